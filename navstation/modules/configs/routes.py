from fastapi import APIRouter, Depends
from navstation.core.dependencies import get_store, require_auth
from navstation.database.base import EntityStore
from navstation.modules.configs.schemas import ConfigValue, ConfigResponse
from typing import Dict, Optional

router = APIRouter(prefix="/configs", tags=["configs"], dependencies=[Depends(require_auth)])


@router.get("", response_model=Dict[str, str])
async def list_configs(store: EntityStore = Depends(get_store)):
    """All configs as a key -> value mapping"""
    return store.list_configs()


@router.get("/{key}", response_model=Optional[ConfigResponse])
async def get_config(key: str, store: EntityStore = Depends(get_store)):
    row = store.get_config(key)
    return ConfigResponse(**row) if row else None


@router.put("/{key}")
async def set_config(key: str, data: ConfigValue, store: EntityStore = Depends(get_store)):
    """Insert or replace a config value"""
    store.set_config(key, data.value)
    return {"success": True}


@router.delete("/{key}")
async def delete_config(key: str, store: EntityStore = Depends(get_store)):
    return {"success": store.delete_config(key)}
