"""
Object-store helpers.

All binary assets (covers, pages, avatars, ads) go through Django's default
storage, which is S3Boto3Storage when the S3-compatible store is configured and
the local filesystem otherwise. Presigned URLs need the raw boto3 client.

Key layout:
    covers/{comic_id}.jpg
    user-comics/{user_id}/covers/{comic_id}.jpg
    user-comics/{user_id}/pages/{comic_id}/{page:03d}.jpg
    user-comics/{user_id}/staging/{draft_id}/...      (upload wizard scratch space)
    avatars/{user_id}.jpg
    ads/{position}/*
"""
import logging
import posixpath
import re
import time
from dataclasses import dataclass
from typing import List, Optional

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage

logger = logging.getLogger(__name__)

_STORAGE_ERRORS = (OSError, BotoCoreError, ClientError)


class StorageError(Exception):
    """The object store rejected or failed an operation."""


@dataclass
class StoredObject:
    key: str
    url: str


# -------------------------
# Key builders
# -------------------------
def cover_key(comic_id) -> str:
    return f"covers/{comic_id}.jpg"


def user_comic_cover_key(user_id, comic_id) -> str:
    return f"user-comics/{user_id}/covers/{comic_id}.jpg"


def user_comic_page_key(user_id, comic_id, page_number: int) -> str:
    return f"user-comics/{user_id}/pages/{comic_id}/{page_number:03d}.jpg"


def user_comic_pages_prefix(user_id, comic_id) -> str:
    return f"user-comics/{user_id}/pages/{comic_id}/"


def staging_prefix(user_id, draft_id) -> str:
    return f"user-comics/{user_id}/staging/{draft_id}/"


def avatar_key(user_id) -> str:
    return f"avatars/{user_id}.jpg"


def ad_prefix(position: str) -> str:
    return f"ads/{position}/"


def _clean_filename(name: str) -> str:
    base = posixpath.basename(name or "file")
    return re.sub(r"\s+", "-", base).lower()


# -------------------------
# Operations
# -------------------------
def upload_file(file, path: str = "") -> StoredObject:
    """
    Store an uploaded file under `{path}/{timestamp}-{name}`.
    The timestamp prefix keeps repeated uploads of the same filename apart.
    """
    timestamp = int(time.time() * 1000)
    file_name = _clean_filename(getattr(file, "name", "") or "file")
    key = f"{path.strip('/')}/{timestamp}-{file_name}" if path else f"{timestamp}-{file_name}"
    try:
        saved = default_storage.save(key, file)
        url = default_storage.url(saved)
    except _STORAGE_ERRORS as e:
        logger.error(f"Upload to {key} failed: {e}")
        raise StorageError(f"Upload failed: {e}") from e
    logger.info(f"Uploaded {saved}")
    return StoredObject(key=saved, url=url)


def put_object(key: str, content) -> StoredObject:
    """
    Write content at a fixed key, replacing whatever is there.
    `content` may be bytes or a Django File / UploadedFile.
    """
    if isinstance(content, (bytes, bytearray)):
        content = ContentFile(bytes(content))
    try:
        if hasattr(content, "seek"):
            content.seek(0)
        if default_storage.exists(key):
            default_storage.delete(key)
        saved = default_storage.save(key, content)
        url = default_storage.url(saved)
    except _STORAGE_ERRORS as e:
        logger.error(f"Write to {key} failed: {e}")
        raise StorageError(f"Upload failed: {e}") from e
    if saved != key:
        logger.warning(f"Storage renamed {key} to {saved}")
    logger.info(f"Stored {saved}")
    return StoredObject(key=saved, url=url)


def get_file(key: str) -> bytes:
    try:
        with default_storage.open(key, "rb") as fh:
            return fh.read()
    except _STORAGE_ERRORS as e:
        raise StorageError(f"Could not read {key}: {e}") from e


def delete_file(key: str) -> None:
    if not key:
        return
    try:
        default_storage.delete(key)
    except _STORAGE_ERRORS as e:
        logger.error(f"Delete of {key} failed: {e}")
        raise StorageError(f"Delete failed: {e}") from e
    logger.info(f"Deleted {key}")


def list_files(prefix: str = "") -> List[StoredObject]:
    """
    Non-recursive listing of the objects directly under `prefix`.
    A missing prefix lists as empty.
    """
    directory = prefix.rstrip("/")
    try:
        _dirs, files = default_storage.listdir(directory)
    except FileNotFoundError:
        return []
    except _STORAGE_ERRORS as e:
        raise StorageError(f"Listing {prefix} failed: {e}") from e
    keys = [posixpath.join(directory, name) if directory else name for name in sorted(files)]
    return [StoredObject(key=k, url=default_storage.url(k)) for k in keys]


def delete_prefix(prefix: str) -> int:
    removed = 0
    for obj in list_files(prefix):
        delete_file(obj.key)
        removed += 1
    return removed


def _s3_client():
    return boto3.client(
        's3',
        aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
        aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
        region_name=settings.AWS_S3_REGION_NAME,
        endpoint_url=settings.AWS_S3_ENDPOINT_URL,
        config=Config(signature_version='s3v4', s3={'addressing_style': 'path'}),
    )


def get_signed_url(key: str, expires_in: Optional[int] = None) -> str:
    """
    Time-limited URL for a private object. Falls back to the plain storage URL
    when no S3 store is configured (local development).
    """
    expires_in = expires_in or settings.SIGNED_URL_EXPIRES
    if not getattr(settings, "S3_CONFIGURED", False):
        return default_storage.url(key)
    try:
        return _s3_client().generate_presigned_url(
            'get_object',
            Params={'Bucket': settings.AWS_STORAGE_BUCKET_NAME, 'Key': key},
            ExpiresIn=expires_in,
        )
    except (BotoCoreError, ClientError) as e:
        logger.error(f"Error generating pre-signed URL for {key}: {e}")
        raise StorageError("Unable to generate pre-signed URL") from e
