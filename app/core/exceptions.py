# app/core/exceptions.py
from typing import Optional


class PhotoShareError(Exception):
    """Base class for errors surfaced to the user as a notification or envelope."""

    status_code = 500
    title = "Erro"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_data(self) -> Optional[dict]:
        return None


class AuthorizationError(PhotoShareError):
    """Missing or mismatched ownership. The view redirects away."""

    status_code = 403
    title = "Acesso negado"

    def __init__(self, message: str, redirect_to: str = "/dashboard"):
        super().__init__(message)
        self.redirect_to = redirect_to

    def to_data(self) -> Optional[dict]:
        return {"redirect": self.redirect_to}


class NotFoundError(PhotoShareError):
    status_code = 404
    title = "Evento não encontrado"

    def __init__(self, message: str, back_to: str = "/"):
        super().__init__(message)
        self.back_to = back_to

    def to_data(self) -> Optional[dict]:
        return {"back": self.back_to}


class DeviceAccessError(PhotoShareError):
    """Camera permission denied or hardware unavailable."""

    status_code = 503
    title = "Erro ao acessar a câmera"


class RemoteCallError(PhotoShareError):
    """A record-store or object-store call failed. Carries the collaborator's message."""

    status_code = 502

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.stage = stage

    def to_data(self) -> Optional[dict]:
        return {"stage": self.stage} if self.stage else None


class ValidationError(PhotoShareError):
    status_code = 400
    title = "Dados inválidos"
