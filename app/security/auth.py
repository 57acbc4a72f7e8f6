import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt

from app.config.settings import settings
from app.schemas.user import CurrentUser, TokenData

logger = logging.getLogger(__name__)

# Tokens are issued by the external auth backend; this service only reads them
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/v1/token", auto_error=False)

def decode_access_token(token: str) -> Optional[TokenData]:
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            options={"verify_aud": False},
        )
    except JWTError as e:
        logger.warning(f"Rejected access token: {e}")
        return None

    user_id = payload.get("sub")
    if not user_id:
        return None
    return TokenData(user_id=str(user_id), email=payload.get("email"))

def get_current_user(token: Optional[str] = Depends(oauth2_scheme)) -> Optional[CurrentUser]:
    """The authenticated identity, or None for guests and invalid tokens."""
    if not token:
        return None
    token_data = decode_access_token(token)
    if token_data is None:
        return None
    return CurrentUser(id=token_data.user_id, email=token_data.email)
