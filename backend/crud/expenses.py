from sqlalchemy.orm import Session
from crud.audit_log import create_audit_log
from crud.billing_aggregation import expense_breakdown
from schemas.audit_log import AuditLogCreate
from utils import sqlalchemy_to_dict
from utils.periods import month_range, resolve_period, year_range
from models import expenses as models
from schemas import expenses as schemas
from typing import Optional
from models.audit_mixin import clinic_now

def _log_change(db: Session, db_expense: models.Expense, tenant_id: str, user_id: str, action: str, old_values: dict):
    log_entry = AuditLogCreate(
        tenant_id=tenant_id,
        table_name='expenses',
        record_id=db_expense.id,
        changed_by=user_id,
        action=action,
        old_values=old_values or {},
        new_values=sqlalchemy_to_dict(db_expense) or {}
    )
    create_audit_log(db=db, log_entry=log_entry)

def get_expense(db: Session, expense_id: int, tenant_id: str):
    return db.query(models.Expense).filter(models.Expense.id == expense_id, models.Expense.tenant_id == tenant_id).first()

def list_expenses(db: Session, tenant_id: str, year: int, month: Optional[int] = None, category: Optional[models.ExpenseCategory] = None, limit: int = 100, tz=None) -> schemas.ExpenseList:
    # Validates year/month before querying
    resolve_period("month" if month else "year", year, month, tz=tz)
    date_range = month_range(year, month, tz) if month else year_range(year, tz)

    query = db.query(models.Expense).filter(
        models.Expense.tenant_id == tenant_id,
        models.Expense.expense_date >= date_range.start,
        models.Expense.expense_date <= date_range.end
    )
    if category:
        query = query.filter(models.Expense.category == category)

    # The category summary covers every matching expense, not just the returned page
    matching = [schemas.ExpenseRecord.model_validate(e) for e in query.order_by(models.Expense.expense_date.desc(), models.Expense.id.desc()).all()]
    return schemas.ExpenseList(expenses=matching[:limit], summary=expense_breakdown(matching))

def create_expense(db: Session, expense: schemas.ExpenseCreate, tenant_id: str, user_id: str = None):
    db_expense = models.Expense(**expense.model_dump(), tenant_id=tenant_id, created_by=user_id)
    db.add(db_expense)
    db.commit()
    db.refresh(db_expense)
    _log_change(db, db_expense, tenant_id, user_id, 'CREATE', {})
    return db_expense

def update_expense(db: Session, expense_id: int, expense: schemas.ExpenseUpdate, tenant_id: str, user_id: str = None):
    db_expense = get_expense(db, expense_id, tenant_id)
    if db_expense:
        old_values = sqlalchemy_to_dict(db_expense)
        for key, value in expense.model_dump().items():
            setattr(db_expense, key, value)
        if not db_expense.is_recurring:
            db_expense.recurring_frequency = None
        db_expense.updated_by = user_id
        db.commit()
        db.refresh(db_expense)
        _log_change(db, db_expense, tenant_id, user_id, 'UPDATE', old_values)
    return db_expense

def delete_expense(db: Session, expense_id: int, tenant_id: str, user_id: str = None):
    db_expense = get_expense(db, expense_id, tenant_id)
    if db_expense:
        old_values = sqlalchemy_to_dict(db_expense)
        # Soft-delete
        db_expense.deleted_at = clinic_now()
        db_expense.deleted_by = user_id
        db.add(db_expense)
        db.commit()
        _log_change(db, db_expense, tenant_id, user_id, 'DELETE', old_values)

    return db_expense
