import uuid

from sqlalchemy import Column, DateTime, Numeric, String

from lernova.database import Base


class OrderEntry(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(64), nullable=False, index=True)
    course_id = Column(String(64), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    payment_method = Column(String(16), nullable=False)
    status = Column(String(16), nullable=False, default="pending")
    transaction_uuid = Column(String(64), nullable=True, index=True)
    payment_reference = Column(String(128), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)
