from pydantic import BaseModel, field_validator
from typing import Optional
from datetime import datetime

from navstation.core.validation import optional_text, required_text


class SiteCreate(BaseModel):
    group_id: int
    name: str
    url: str
    icon: str = ""
    description: str = ""
    notes: str = ""
    order_num: Optional[int] = None  # None appends within the group

    @field_validator("name", "url")
    @classmethod
    def not_blank(cls, v: str, info) -> str:
        return required_text(v, info.field_name)


class SiteUpdate(BaseModel):
    group_id: Optional[int] = None  # a new group moves the site; appended there unless order_num is given
    name: Optional[str] = None
    url: Optional[str] = None
    icon: Optional[str] = None
    description: Optional[str] = None
    notes: Optional[str] = None
    order_num: Optional[int] = None

    @field_validator("name", "url")
    @classmethod
    def not_blank(cls, v: Optional[str], info) -> Optional[str]:
        return optional_text(v, info.field_name)


class SiteResponse(BaseModel):
    id: int
    group_id: int
    name: str
    url: str
    icon: str = ""
    description: str = ""
    notes: str = ""
    order_num: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
