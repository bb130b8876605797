from sqlalchemy.orm import Session, selectinload
from models.receipts import Receipt, ReceiptLineItem, PaymentMode
from schemas.receipts import (
    ReceiptCreate,
    ReceiptRecord,
    OutstandingReceipt,
    OutstandingReceipts,
    OutstandingSummary,
    OutstandingAgeGroups,
    MarkReceiptsPaid,
)
from utils.formatting import format_receipt_number, parse_receipt_number
from utils.periods import to_local
from datetime import datetime
from decimal import Decimal
import logging

logger = logging.getLogger(__name__)

OUTSTANDING_SORTS = ("date", "amount", "patient")


def next_receipt_number(db: Session, tenant_id: str, year: int) -> str:
    prefix = f"RCP-{year}-"
    numbers = db.query(Receipt.receipt_number).filter(
        Receipt.tenant_id == tenant_id,
        Receipt.receipt_number.like(f"{prefix}%")
    ).all()
    parsed = [parse_receipt_number(number) for (number,) in numbers]
    sequences = [p[1] for p in parsed if p]
    return format_receipt_number(year, max(sequences, default=0) + 1)


def create_receipt(db: Session, receipt: ReceiptCreate, tenant_id: str, user_id: str = None, tz=None) -> Receipt:
    subtotal = sum((item.amount for item in receipt.line_items), Decimal(0))
    total_amount = subtotal - receipt.discount_amount
    if total_amount < 0:
        raise ValueError(f"Discount {receipt.discount_amount} exceeds the receipt subtotal {subtotal}.")
    if receipt.is_paid and receipt.payment_mode == PaymentMode.UNPAID:
        raise ValueError("A paid receipt needs a payment mode other than 'unpaid'.")

    receipt_year = to_local(receipt.receipt_date, tz).year
    db_receipt = Receipt(
        tenant_id=tenant_id,
        receipt_number=next_receipt_number(db, tenant_id, receipt_year),
        receipt_date=receipt.receipt_date,
        subtotal=subtotal,
        discount_amount=receipt.discount_amount,
        discount_reason=receipt.discount_reason,
        total_amount=total_amount,
        payment_mode=receipt.payment_mode if receipt.is_paid else PaymentMode.UNPAID,
        is_paid=receipt.is_paid,
        patient_name=receipt.patient_name.strip(),
        patient_phone=receipt.patient_phone,
        notes=receipt.notes,
        created_by=user_id,
        line_items=[ReceiptLineItem(description=item.description.strip(), amount=item.amount) for item in receipt.line_items],
    )
    db.add(db_receipt)
    db.commit()
    db.refresh(db_receipt)
    logger.info(f"Created receipt {db_receipt.receipt_number} for tenant {tenant_id}")
    return db_receipt


def _outstanding(receipt: Receipt, days_overdue: int) -> OutstandingReceipt:
    record = ReceiptRecord.model_validate(receipt)
    return OutstandingReceipt(**record.model_dump(), days_overdue=days_overdue)


def get_outstanding_receipts(db: Session, tenant_id: str, now: datetime, limit: int = 100, sort_by: str = "date", tz=None) -> OutstandingReceipts:
    if sort_by not in OUTSTANDING_SORTS:
        raise ValueError(f"sort_by must be one of: {', '.join(OUTSTANDING_SORTS)}")

    order = {
        "date": (Receipt.receipt_date.desc(), Receipt.id.desc()),
        "amount": (Receipt.total_amount.desc(), Receipt.id.desc()),
        "patient": (Receipt.patient_name.asc(), Receipt.id.asc()),
    }[sort_by]

    query = db.query(Receipt).options(selectinload(Receipt.line_items)).filter(
        Receipt.tenant_id == tenant_id,
        Receipt.is_paid.is_(False)
    )
    unpaid = query.order_by(*order).limit(limit).all()

    today = to_local(now, tz).date()
    rows = []
    groups = OutstandingAgeGroups()
    for receipt in unpaid:
        days_overdue = max(0, (today - to_local(receipt.receipt_date, tz).date()).days)
        rows.append(_outstanding(receipt, days_overdue))
        if days_overdue == 0:
            groups.today += 1
        elif days_overdue <= 7:
            groups.this_week += 1
        elif days_overdue <= 30:
            groups.this_month += 1
        else:
            groups.older += 1

    summary = OutstandingSummary(
        total_count=len(rows),
        total_pending=sum((r.total_amount for r in rows), Decimal(0)),
        oldest_receipt_date=min((r.receipt_date for r in rows), default=None),
        age_groups=groups,
    )
    return OutstandingReceipts(receipts=rows, summary=summary)


def mark_receipts_paid(db: Session, request: MarkReceiptsPaid, tenant_id: str, user_id: str = None) -> int:
    if request.payment_mode == PaymentMode.UNPAID:
        raise ValueError("Cannot collect a balance with payment mode 'unpaid'.")

    receipts = db.query(Receipt).filter(
        Receipt.id.in_(request.receipt_ids),
        Receipt.tenant_id == tenant_id,
        Receipt.is_paid.is_(False)
    ).all()
    for receipt in receipts:
        receipt.is_paid = True
        receipt.payment_mode = request.payment_mode or PaymentMode.OTHER
        receipt.updated_by = user_id
    db.commit()
    logger.info(f"Marked {len(receipts)} receipts paid for tenant {tenant_id}")
    return len(receipts)

