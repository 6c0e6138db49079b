from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class ConfigValue(BaseModel):
    value: str


class ConfigResponse(BaseModel):
    key: str
    value: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
