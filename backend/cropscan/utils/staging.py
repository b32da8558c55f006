# backend/cropscan/utils/staging.py
import base64
import logging
import os
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from cropscan.errors import StorageError, ValidationError

log = logging.getLogger("cropscan.staging")


@dataclass(frozen=True)
class StagedImage:
    path: Path
    base64: str


def _unique_path(directory: Path) -> Path:
    # uuid4, not a timestamp: concurrent uploads must never share a name
    return directory / f"upload-{uuid.uuid4().hex}"


@contextmanager
def staged_upload(data: bytes, directory: str) -> Iterator[StagedImage]:
    """
    Write an uploaded image to a uniquely named temp file and yield it with its base64 encoding.
    The file is removed exactly once on exit, success or failure.
    A failed removal is logged and never raised.
    """
    if not data:
        raise ValidationError("Image data is required")

    folder = Path(directory)
    path = _unique_path(folder)
    try:
        folder.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        encoded = base64.b64encode(path.read_bytes()).decode("ascii")
    except OSError as e:
        log.error("Failed to stage upload at %s: %s", path, e)
        _discard(path)
        raise StorageError("Failed to store uploaded image") from e

    try:
        yield StagedImage(path=path, base64=encoded)
    finally:
        _discard(path)


def _discard(path: Path) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        log.warning("Could not delete staged file %s: %s", path, e)
