from pydantic import BaseModel, field_validator
from typing import Optional, List
from datetime import datetime

from navstation.core.validation import optional_text, required_text
from navstation.modules.sites.schemas import SiteResponse


class GroupCreate(BaseModel):
    name: str
    order_num: Optional[int] = None  # None appends after the last group

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        return required_text(v, "name")


class GroupUpdate(BaseModel):
    name: Optional[str] = None
    order_num: Optional[int] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: Optional[str]) -> Optional[str]:
        return optional_text(v, "name")


class GroupResponse(BaseModel):
    id: int
    name: str
    order_num: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class GroupWithSitesResponse(GroupResponse):
    sites: List[SiteResponse] = []
