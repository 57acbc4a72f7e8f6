from typing import Optional

from pydantic import BaseModel

class Notification(BaseModel):
    title: str
    description: Optional[str] = None
    variant: str = "default"
