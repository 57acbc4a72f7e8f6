# app/utils/validation.py
import base64
import binascii
import re

from app.core.exceptions import ValidationError

EVENT_CODE_REQUIRED = "Por favor, insira o código do evento"
DATA_URL_REGEX = re.compile(r'^data:image/[a-zA-Z0-9.+-]+;base64,')

def validate_event_code(event_code) -> str:
    code = (event_code or "").strip()
    if not code:
        raise ValidationError(EVENT_CODE_REQUIRED)
    return code

def decode_data_url(image: str) -> bytes:
    """Decode a canvas data URL (or bare base64) into raw bytes."""
    payload = DATA_URL_REGEX.sub('', image.strip(), count=1)
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("Imagem inválida")
    if not data:
        raise ValidationError("Imagem vazia")
    return data

def sanitize_event_name(name: str) -> str:
    # ASCII letters and digits only, whatever Unicode case folding says
    return re.sub(r'[^A-Za-z0-9]', '_', name).lower()

def format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    elif size < 1024 * 1024:
        return f"{size / 1024:.2f} KB"
    elif size < 1024 * 1024 * 1024:
        return f"{size / (1024 * 1024):.2f} MB"
    else:
        return f"{size / (1024 * 1024 * 1024):.2f} GB"
