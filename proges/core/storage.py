# proges/core/storage.py
#
# Bucket file storage. Objects live under STORAGE_DIR/<bucket>/<path>
# and are served by the /storage static mount.

import logging
from pathlib import Path, PurePosixPath

from proges.core.config import settings
from proges.core.errors import BackendError

logger = logging.getLogger("proges")


def _object_path(bucket: str, path: str) -> Path:
    parts = PurePosixPath(path).parts

    if not parts or ".." in parts or PurePosixPath(path).is_absolute():
        raise BackendError(f"Invalid object path: {path}", table=bucket)

    return Path(settings.STORAGE_DIR, bucket, *parts)


def upload(bucket: str, path: str, data: bytes, upsert: bool = True) -> str:
    target = _object_path(bucket, path)

    if target.exists() and not upsert:
        raise BackendError("The resource already exists", table=bucket)

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
    except OSError as exc:
        logger.error(f"Upload to {bucket}/{path} failed: {exc}")
        raise BackendError(str(exc), table=bucket) from exc

    return get_public_url(bucket, path)


def get_public_url(bucket: str, path: str) -> str:
    return f"{settings.PUBLIC_BASE_URL.rstrip('/')}/storage/{bucket}/{path}"
