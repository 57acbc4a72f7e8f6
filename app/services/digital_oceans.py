import io
import logging
from datetime import datetime
from typing import Iterator, List, Optional, Tuple

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from app.config.settings import settings
from app.core.exceptions import RemoteCallError

logger = logging.getLogger(__name__)

# S3 DeleteObjects accepts at most this many keys per request
DELETE_BATCH_SIZE = 1000


def get_spaces_client():
    return boto3.client('s3',
                        aws_access_key_id=settings.SPACES_ACCESS_KEY_ID,
                        aws_secret_access_key=settings.SPACES_SECRET_ACCESS_KEY,
                        endpoint_url=settings.SPACES_ENDPOINT)


def upload_bytes_to_spaces(data: bytes, file_path: str, content_type: str = "image/jpeg") -> str:
    s3_client = get_spaces_client()
    try:
        s3_client.upload_fileobj(io.BytesIO(data), settings.SPACES_BUCKET, file_path,
                                 ExtraArgs={'ContentType': content_type})
        return file_path
    except (ClientError, BotoCoreError) as e:
        logger.error(f"Error uploading {file_path}: {e}")
        raise RemoteCallError(f"Falha no envio do arquivo: {e}", stage="storage_upload") from e


def download_file_from_spaces(file_path: str) -> bytes:
    s3_client = get_spaces_client()
    try:
        buffer = io.BytesIO()
        s3_client.download_fileobj(settings.SPACES_BUCKET, file_path, buffer)
        return buffer.getvalue()
    except (ClientError, BotoCoreError) as e:
        logger.error(f"Error downloading {file_path}: {e}")
        raise RemoteCallError(f"Falha ao baixar {file_path}: {e}", stage="storage_download") from e


def delete_files_from_spaces(file_paths: List[str]) -> List[str]:
    """Remove objects in batch calls, stopping at the first batch that fails.

    Keys already removed by earlier batches stay removed.
    """
    if not file_paths:
        return []

    s3_client = get_spaces_client()
    removed = []
    for start in range(0, len(file_paths), DELETE_BATCH_SIZE):
        chunk = file_paths[start:start + DELETE_BATCH_SIZE]
        try:
            result = s3_client.delete_objects(
                Bucket=settings.SPACES_BUCKET,
                Delete={'Objects': [{'Key': key} for key in chunk], 'Quiet': True}
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error deleting files: {e}")
            raise RemoteCallError(f"Falha ao remover arquivos: {e}", stage="storage_remove") from e

        errors = result.get('Errors') or []
        if errors:
            first = errors[0]
            logger.error(f"Storage refused to delete {len(errors)} file(s), first: {first.get('Key')}")
            raise RemoteCallError(
                f"Falha ao remover {first.get('Key')}: {first.get('Message', first.get('Code'))}",
                stage="storage_remove"
            )
        removed.extend(chunk)
    return removed


def list_files_in_spaces(prefix: str = "") -> Iterator[Tuple[str, Optional[datetime]]]:
    """Yield (key, last_modified) for every object under the prefix."""
    s3_client = get_spaces_client()
    try:
        paginator = s3_client.get_paginator('list_objects_v2')
        for page in paginator.paginate(Bucket=settings.SPACES_BUCKET, Prefix=prefix):
            for obj in page.get('Contents', []):
                yield obj['Key'], obj.get('LastModified')
    except (ClientError, BotoCoreError) as e:
        logger.error(f"Error listing files: {e}")
        raise RemoteCallError(f"Falha ao listar arquivos: {e}", stage="storage_list") from e


def generate_public_url(file_path: str) -> str:
    return f"{settings.public_storage_url}/{file_path}"
