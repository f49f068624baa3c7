"""Certificate file storage.

Files live under {root_dir}/{bucket}/ and are addressed by relative paths
such as "certificates/<student_id>/<uuid>.pdf". Downloads go through
short-lived signed URLs whose token binds the path and an expiry.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path, PurePosixPath
from urllib.parse import quote

import structlog
from jose import JWTError, jwt

from credhub.config.app_config import AppConfig, load_app_config

logger = structlog.get_logger(__name__)

FILES_URL_PREFIX = "/api/files"
TOKEN_TYPE_FILE = "file"


class StorageError(Exception):
    """Error reading or writing the file store."""


class FileExistsInStorageError(StorageError):
    """Target path exists and upsert was not requested."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"The resource already exists: {path}")


class InvalidSignedUrlError(StorageError):
    """Signed URL token is invalid, expired, or for another path."""


def _normalize_path(path: str) -> str:
    """Validate a relative storage path and return it in posix form."""
    pure = PurePosixPath(path)
    if not path or pure.is_absolute() or ".." in pure.parts:
        raise StorageError(f"Invalid storage path: {path!r}")
    return str(pure)


class FileStorage:
    """Local file bucket."""

    def __init__(self, root_dir: Path, bucket: str = "certificates"):
        self.root_dir = Path(root_dir)
        self.bucket = bucket

    @property
    def bucket_dir(self) -> Path:
        return self.root_dir / self.bucket

    def _resolve(self, path: str) -> Path:
        return self.bucket_dir / _normalize_path(path)

    def upload(self, path: str, content: bytes, upsert: bool = False) -> str:
        """Store content at path.

        Returns:
            The normalized stored path

        Raises:
            FileExistsInStorageError: If path exists and upsert is False
            StorageError: On invalid path or write failure
        """
        target = self._resolve(path)
        if target.exists() and not upsert:
            raise FileExistsInStorageError(path)

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
        except OSError as e:
            raise StorageError(str(e)) from e

        stored = _normalize_path(path)
        logger.debug("storage.uploaded", path=stored, size=len(content))
        return stored

    def remove(self, paths: list[str]) -> list[str]:
        """Delete files; missing paths are ignored.

        Returns:
            Paths that were actually removed
        """
        removed = []
        for path in paths:
            target = self._resolve(path)
            if target.exists():
                target.unlink()
                removed.append(path)

        logger.debug("storage.removed", count=len(removed))
        return removed

    def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()

    def open(self, path: str) -> bytes:
        """Read file content.

        Raises:
            StorageError: If the file does not exist
        """
        target = self._resolve(path)
        if not target.is_file():
            raise StorageError(f"Object not found: {path}")
        return target.read_bytes()


def get_storage(config: AppConfig | None = None) -> FileStorage:
    """Build the configured certificate bucket."""
    config = config or load_app_config()
    return FileStorage(Path(config.storage.root_dir), config.storage.bucket)


def create_signed_url(
    path: str,
    expires_in: int,
    config: AppConfig | None = None,
) -> str:
    """Create a download URL valid for expires_in seconds."""
    config = config or load_app_config()
    path = _normalize_path(path)
    payload = {
        "path": path,
        "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in),
        "type": TOKEN_TYPE_FILE,
    }
    token = jwt.encode(
        payload, config.auth.get_secret_key(), algorithm=config.auth.algorithm
    )
    return f"{FILES_URL_PREFIX}/{quote(path)}?token={token}"


def verify_signed_token(path: str, token: str, config: AppConfig | None = None) -> None:
    """Check that token grants access to path.

    Raises:
        InvalidSignedUrlError: If the token is bad, expired, or for another path
    """
    config = config or load_app_config()
    try:
        payload = jwt.decode(
            token, config.auth.get_secret_key(), algorithms=[config.auth.algorithm]
        )
    except JWTError as e:
        raise InvalidSignedUrlError(str(e)) from e

    if payload.get("type") != TOKEN_TYPE_FILE:
        raise InvalidSignedUrlError("Invalid token type")
    if payload.get("path") != _normalize_path(path):
        raise InvalidSignedUrlError("Token does not match path")
