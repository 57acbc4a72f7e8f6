from pydantic import BaseModel
from typing import Optional

class CurrentUser(BaseModel):
    id: str
    email: Optional[str] = None

class TokenData(BaseModel):
    user_id: Optional[str] = None
    email: Optional[str] = None

class Response(BaseModel):
    message: str
    status: str
    status_code: int
    data: Optional[dict] = None
