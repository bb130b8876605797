from typing import Optional
from datetime import datetime
from fastapi import Header, HTTPException
import pytz

def get_tenant_id(x_tenant_id: str = Header(...)) -> str:
    if not x_tenant_id:
        raise HTTPException(status_code=400, detail="X-Tenant-ID header is missing")
    return x_tenant_id

def get_user_id(x_user_id: Optional[str] = Header(None)) -> Optional[str]:
    return x_user_id

def get_now() -> datetime:
    """Request clock. Routers take `now` from here so tests can pin it with a dependency override."""
    return datetime.now(pytz.utc)
