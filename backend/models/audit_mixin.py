from sqlalchemy import Column, DateTime, String
from datetime import datetime

from utils.periods import get_timezone


def clinic_now():
    """Current time in the deployment's default reporting timezone."""
    return datetime.now(get_timezone())


class TimestampMixin:
    """Mixin that provides created/updated timestamps and user info.

    Receipts and budget targets use this alone: receipts are financial records
    that are never deleted, and budget targets are overwritten in place.
    """
    # DateTime(timezone=True) keeps the clinic's offset with the stored value.
    created_at = Column(DateTime(timezone=True), default=clinic_now)
    updated_at = Column(DateTime(timezone=True), onupdate=clinic_now)
    created_by = Column(String, nullable=True)
    updated_by = Column(String, nullable=True)


class SoftDeleteMixin:
    """Mixin for soft-delete columns (deleted_at, deleted_by).

    Rows carrying these columns are hidden from every SELECT by the
    `do_orm_execute` listener in `database.py` once `deleted_at` is set.
    """
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    deleted_by = Column(String, nullable=True)


class AuditMixin(TimestampMixin, SoftDeleteMixin):
    """Timestamps + soft-delete, used by staff-editable records such as expenses."""
    pass
