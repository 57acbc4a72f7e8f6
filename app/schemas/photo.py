from typing import List, Optional

from pydantic import BaseModel, field_validator
from datetime import datetime

class PhotoOut(BaseModel):
    id: str
    event_id: str
    storage_path: str
    taken_by: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True

    @field_validator("storage_path")
    @classmethod
    def path_has_file_name(cls, value: str) -> str:
        if not value or value.endswith("/"):
            raise ValueError("storage_path must name an object")
        return value

    @property
    def file_name(self) -> str:
        return self.storage_path.split("/")[-1]

class ExportRequest(BaseModel):
    photo_ids: List[str] = []
