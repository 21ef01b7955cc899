from lernova.models.schema.order import OrderEntry
from lernova.models.schema.otp import EmailVerificationEntry


class Databases:
    otp = EmailVerificationEntry
    order = OrderEntry
