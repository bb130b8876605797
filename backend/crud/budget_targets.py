from sqlalchemy.orm import Session
from models.budget_targets import BudgetTarget
from schemas.budget_targets import BudgetTargetCreate, BudgetBulkUpdate, BudgetMonthTarget
from crud.audit_log import create_audit_log
from schemas.audit_log import AuditLogCreate
from utils import sqlalchemy_to_dict
from typing import List
import logging

logger = logging.getLogger(__name__)


def get_budget_targets(db: Session, tenant_id: str, year: int) -> List[BudgetTarget]:
    return db.query(BudgetTarget).filter(
        BudgetTarget.tenant_id == tenant_id,
        BudgetTarget.year == year
    ).order_by(BudgetTarget.month).all()


def _upsert(db: Session, tenant_id: str, year: int, target: BudgetMonthTarget, user_id: str) -> BudgetTarget:
    """Create or overwrite the single (tenant, year, month) target. Does not commit."""
    db_target = db.query(BudgetTarget).filter(
        BudgetTarget.tenant_id == tenant_id,
        BudgetTarget.year == year,
        BudgetTarget.month == target.month
    ).first()

    notes = target.notes.strip() if target.notes else None
    if db_target:
        old_values = sqlalchemy_to_dict(db_target)
        db_target.target_revenue = target.target_revenue
        db_target.target_expenses = target.target_expenses or None
        db_target.notes = notes
        db_target.updated_by = user_id
        action = 'UPDATE'
    else:
        db_target = BudgetTarget(
            tenant_id=tenant_id,
            year=year,
            month=target.month,
            target_revenue=target.target_revenue,
            target_expenses=target.target_expenses or None,
            notes=notes,
            created_by=user_id
        )
        db.add(db_target)
        old_values = {}
        action = 'CREATE'

    db.flush()
    create_audit_log(db, AuditLogCreate(
        tenant_id=tenant_id,
        table_name='budget_targets',
        record_id=db_target.id,
        changed_by=user_id,
        action=action,
        old_values=old_values,
        new_values=sqlalchemy_to_dict(db_target)
    ), commit=False)
    return db_target


def upsert_budget_target(db: Session, target: BudgetTargetCreate, tenant_id: str, user_id: str = None) -> BudgetTarget:
    db_target = _upsert(db, tenant_id, target.year, target, user_id)
    db.commit()
    db.refresh(db_target)
    return db_target


def bulk_upsert_budget_targets(db: Session, bulk: BudgetBulkUpdate, tenant_id: str, user_id: str = None) -> List[BudgetTarget]:
    months = [t.month for t in bulk.targets]
    if len(months) != len(set(months)):
        raise ValueError("Each month may appear only once in a bulk budget update.")

    for target in bulk.targets:
        _upsert(db, tenant_id, bulk.year, target, user_id)
    db.commit()
    logger.info(f"Saved {len(bulk.targets)} budget targets for tenant {tenant_id}, year {bulk.year}")
    return get_budget_targets(db, tenant_id, bulk.year)
