from pydantic import BaseModel
from typing import Optional

class AppConfigBase(BaseModel):
    name: str
    value: str

class AppConfigCreate(AppConfigBase):
    pass

class AppConfigUpdate(BaseModel):
    value: Optional[str] = None

class AppConfigOut(AppConfigBase):
    id: int
    tenant_id: Optional[str] = None

    class Config:
        from_attributes = True


class ReportingConfig(BaseModel):
    reporting_timezone: str
