from sqlalchemy import Column, Integer, String, Text, Numeric, DateTime, Boolean, ForeignKey, Enum, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from database import Base
import enum
from models.audit_mixin import TimestampMixin

class PaymentMode(enum.Enum):
    CASH = "cash"
    UPI = "upi"
    CARD = "card"
    OTHER = "other"
    UNPAID = "unpaid"

class Receipt(Base, TimestampMixin):
    __tablename__ = "receipts"
    __table_args__ = (
        UniqueConstraint('tenant_id', 'receipt_number', name='_tenant_receipt_number_uc'),
        Index('ix_receipts_tenant_date', 'tenant_id', 'receipt_date'),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String, index=True, nullable=False)
    receipt_number = Column(String(32), nullable=False)  # RCP-YYYY-NNNN, sequential per tenant
    receipt_date = Column(DateTime(timezone=True), nullable=False)
    subtotal = Column(Numeric(12, 2), nullable=False, default=0)
    discount_amount = Column(Numeric(12, 2), nullable=False, default=0)
    discount_reason = Column(String, nullable=True)
    total_amount = Column(Numeric(12, 2), nullable=False, default=0)
    payment_mode = Column(Enum(PaymentMode, values_callable=lambda e: [m.value for m in e]), nullable=True)
    is_paid = Column(Boolean, nullable=False, default=False)
    patient_name = Column(String, nullable=False)
    patient_phone = Column(String, nullable=True)
    notes = Column(Text, nullable=True)

    # Relationships
    line_items = relationship("ReceiptLineItem", back_populates="receipt", cascade="all, delete-orphan", order_by="ReceiptLineItem.id")


class ReceiptLineItem(Base):
    __tablename__ = "receipt_line_items"

    id = Column(Integer, primary_key=True, index=True)
    receipt_id = Column(Integer, ForeignKey("receipts.id"), nullable=False)
    description = Column(String, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)

    receipt = relationship("Receipt", back_populates="line_items")
