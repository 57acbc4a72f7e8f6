from typing import Optional

from pydantic import BaseModel, field_validator
from datetime import datetime

class EventOut(BaseModel):
    id: str
    user_id: str
    name: str
    description: Optional[str] = None
    is_public: bool
    created_at: datetime

    class Config:
        from_attributes = True

class EventCreate(BaseModel):
    name: str
    description: Optional[str] = None
    is_public: bool = False

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("O nome do evento é obrigatório")
        return value.strip()

    @field_validator("description")
    @classmethod
    def empty_description_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value
