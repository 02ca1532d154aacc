"""Object storage for uploads. A local directory per bucket, addressed by flat keys."""
import logging
import re
import secrets
import time
from pathlib import Path
from typing import Optional

from file_converter import config as app_config

logger = logging.getLogger("converter.storage")

_KEY_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]{0,254}$")


class StorageError(Exception):
    pass


class ObjectExistsError(StorageError):
    pass


def generate_object_key(file_name: str) -> str:
    """<epoch-ms>-<random>.<ext>, keeping the upload's extension."""
    ext = file_name.rsplit(".", 1)[-1].lower() if "." in file_name else "bin"
    ext = re.sub(r"[^a-z0-9]", "", ext) or "bin"
    return f"{int(time.time() * 1000)}-{secrets.token_hex(6)}.{ext}"


class LocalObjectStorage:
    def __init__(self, root: Path, bucket: str, public_base_url: str):
        self.root = Path(root)
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/")
        (self.root / bucket).mkdir(parents=True, exist_ok=True)

    def path_for(self, key: str) -> Path:
        if not _KEY_RE.match(key or "") or ".." in key:
            raise StorageError(f"Invalid object key: {key!r}")
        return self.root / self.bucket / key

    def put_object(self, key: str, data: bytes, content_type: Optional[str] = None, upsert: bool = False) -> str:
        path = self.path_for(key)
        if path.exists() and not upsert:
            raise ObjectExistsError(f"Object already exists: {key}")
        tmp = path.with_name(f".{key}.part")
        try:
            tmp.write_bytes(data)
            tmp.replace(path)
        except OSError as e:
            tmp.unlink(missing_ok=True)
            raise StorageError(f"Could not write {key}: {e}") from e
        logger.info("Stored %s/%s (%s bytes, %s)", self.bucket, key, len(data), content_type or "unknown type")
        return key

    def get_object(self, key: str) -> bytes:
        path = self.path_for(key)
        if not path.is_file():
            raise StorageError(f"Object not found: {key}")
        return path.read_bytes()

    def delete_object(self, key: str) -> None:
        try:
            self.path_for(key).unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not remove %s: %s", key, e)

    def get_public_url(self, key: str) -> str:
        self.path_for(key)
        return f"{self.public_base_url}/api/files/{key}"


# Singleton
_storage: Optional[LocalObjectStorage] = None


def get_storage() -> LocalObjectStorage:
    global _storage
    if _storage is None:
        _storage = LocalObjectStorage(app_config.STORAGE_DIR, app_config.STORAGE_BUCKET, app_config.PUBLIC_BASE_URL)
    return _storage
