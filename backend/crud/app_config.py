from sqlalchemy.orm import Session
from models.app_config import AppConfig, REPORTING_TIMEZONE as REPORTING_TIMEZONE_KEY
from schemas.app_config import AppConfigCreate, AppConfigUpdate
from models.audit_mixin import clinic_now
from utils.periods import DEFAULT_REPORTING_TIMEZONE, get_timezone
import logging

from crud.audit_log import create_audit_log
from schemas.audit_log import AuditLogCreate
from utils import sqlalchemy_to_dict

logger = logging.getLogger(__name__)


def _audit(db: Session, db_config: AppConfig, tenant_id: str, user_id: str, action: str, old_values: dict):
    log_entry = AuditLogCreate(
        tenant_id=tenant_id,
        table_name='app_config',
        record_id=db_config.id,
        changed_by=user_id,
        action=action,
        old_values=old_values,
        new_values=sqlalchemy_to_dict(db_config),
    )
    create_audit_log(db, log_entry)


def create_config(db: Session, config: AppConfigCreate, tenant_id: str, user_id: str = None):
    if config.name == REPORTING_TIMEZONE_KEY:
        get_timezone(config.value)
    db_config = AppConfig(name=config.name, value=config.value, tenant_id=tenant_id, created_by=user_id)
    db.add(db_config)
    db.commit()
    db.refresh(db_config)
    _audit(db, db_config, tenant_id, user_id, 'CREATE', {})
    return db_config


# Get config by name (or all configs)
def get_config(db: Session, tenant_id: str, name: str = None):
    if name:
        return db.query(AppConfig).filter(AppConfig.name == name, AppConfig.tenant_id == tenant_id).first()
    return db.query(AppConfig).filter(AppConfig.tenant_id == tenant_id).order_by(AppConfig.name).all()


def update_config_by_name(db: Session, name: str, config: AppConfigUpdate, tenant_id: str, user_id: str = None):
    db_config = db.query(AppConfig).filter(AppConfig.name == name, AppConfig.tenant_id == tenant_id).first()
    if not db_config:
        return None
    if name == REPORTING_TIMEZONE_KEY and config.value is not None:
        get_timezone(config.value)

    old_values = sqlalchemy_to_dict(db_config)
    for field, value in config.model_dump(exclude_unset=True).items():
        setattr(db_config, field, value)
    db_config.updated_at = clinic_now()
    db_config.updated_by = user_id
    db.commit()
    db.refresh(db_config)
    _audit(db, db_config, tenant_id, user_id, 'UPDATE', old_values)
    return db_config


def get_reporting_timezone(db: Session, tenant_id: str):
    """The tenant's reporting timezone, falling back to the process default when unset or invalid."""
    db_config = get_config(db, tenant_id, name=REPORTING_TIMEZONE_KEY)
    if db_config is None:
        return get_timezone(DEFAULT_REPORTING_TIMEZONE)
    try:
        return get_timezone(db_config.value)
    except ValueError:
        logger.warning(f"Invalid reporting_timezone '{db_config.value}' for tenant {tenant_id}. Using {DEFAULT_REPORTING_TIMEZONE}.")
        return get_timezone(DEFAULT_REPORTING_TIMEZONE)
