from sqlalchemy import Column, Integer, String, UniqueConstraint
from database import Base
from models.audit_mixin import TimestampMixin

# Known keys
REPORTING_TIMEZONE = "reporting_timezone"

class AppConfig(Base, TimestampMixin):
    """Per-tenant key/value settings, e.g. `reporting_timezone` = `Asia/Kolkata`."""
    __tablename__ = "app_config"
    __table_args__ = (UniqueConstraint('name', 'tenant_id', name='_app_config_name_tenant_uc'),)

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String, index=True)
    name = Column(String(100), nullable=False, index=True)
    value = Column(String(255), nullable=False)  # stored as text, parsed by the reader
