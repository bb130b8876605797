from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from database import get_db
from schemas.app_config import AppConfigCreate, AppConfigUpdate, AppConfigOut
from crud import app_config as crud_app_config
from utils.tenancy import get_tenant_id, get_user_id

router = APIRouter(tags=["Configuration"])
logger = logging.getLogger(__name__)

@router.post("/configurations/", response_model=AppConfigOut)
def create_config(config: AppConfigCreate, db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id), user_id: Optional[str] = Depends(get_user_id)):
    try:
        return crud_app_config.create_config(db, config, tenant_id, user_id=user_id)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail=f"Configuration '{config.name}' already exists")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/configurations/", response_model=List[AppConfigOut])
def get_configs(name: Optional[str] = None, db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id)):
    configs = crud_app_config.get_config(db, tenant_id, name=name)
    # Always return a list, even if empty
    return [configs] if name and configs else configs or []

@router.patch("/configurations/{name}/", response_model=AppConfigOut)
def update_config(name: str, config: AppConfigUpdate, db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id), user_id: Optional[str] = Depends(get_user_id)):
    try:
        updated = crud_app_config.update_config_by_name(db, name, config, tenant_id, user_id=user_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not updated:
        raise HTTPException(status_code=404, detail="Configuration not found")
    return updated
