from typing import Optional


class IntegrationError(RuntimeError):
    """Base for failures reported by the external integration layer."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class MailDeliveryError(IntegrationError):
    """An SMTP exchange failed at ``step``; ``response`` is the raw reply, if any."""

    def __init__(
        self, message: str, step: str, response: Optional[str] = None
    ) -> None:
        super().__init__(message)
        self.step = step
        self.response = response


class AuthenticationFailed(MailDeliveryError):
    def __init__(self, response: Optional[str] = None) -> None:
        super().__init__("SMTP authentication failed", step="auth", response=response)


class InvalidCode(IntegrationError):
    def __init__(self) -> None:
        super().__init__("Invalid verification code")


class Expired(IntegrationError):
    def __init__(self) -> None:
        super().__init__("Verification code has expired")


class OtpStorageError(IntegrationError):
    def __init__(self) -> None:
        super().__init__("Failed to store OTP")


class BatchError(IntegrationError):
    """Not every order of a batch was created.

    Orders that did get inserted are not removed; their ids are kept on
    ``created_order_ids`` so they can be traced.
    """

    def __init__(self, message: str, created_order_ids: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.created_order_ids = created_order_ids


class GatewayError(IntegrationError):
    pass


class GatewayUnavailable(GatewayError):
    def __init__(self, detail: Optional[str] = None) -> None:
        super().__init__(detail or "Payment gateway unavailable")
        self.detail = detail


class MalformedGatewayResponse(GatewayError):
    pass


class ConfigurationError(IntegrationError):
    pass


class InvalidPaymentRequest(IntegrationError):
    pass
