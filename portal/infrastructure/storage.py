import re
import time
from dataclasses import dataclass
from pathlib import Path

from ..config import settings

ALLOWED_FILE_TYPES = (
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "text/plain",
    "image/jpeg",
    "image/png",
    "image/jpg",
)

# тип загрузки -> подкаталог
UPLOAD_DIRS = {
    "assignment": "assignments",
    "submission": "submissions",
}

PUBLIC_PREFIX = "/uploads"

_unsafe_chars = re.compile(r"[^a-zA-Z0-9.-]")


def sanitize_filename(name: str) -> str:
    return _unsafe_chars.sub("_", name)


@dataclass(frozen=True)
class StoredFile:
    url: str
    path: Path
    size: int


class UploadStorage:
    """Локальное хранилище файлов: каталог на тип загрузки, имя с префиксом времени."""

    def __init__(self, root: str | Path, max_size: int):
        self.root = Path(root)
        self.max_size = max_size

    def is_allowed_type(self, content_type: str | None) -> bool:
        return content_type in ALLOWED_FILE_TYPES

    def is_too_large(self, size: int) -> bool:
        return size > self.max_size

    def save(self, upload_type: str, original_name: str, data: bytes) -> StoredFile:
        subdir = UPLOAD_DIRS[upload_type]
        target_dir = self.root / subdir
        target_dir.mkdir(parents=True, exist_ok=True)

        unique_name = f"{int(time.time() * 1000)}-{sanitize_filename(original_name)}"
        path = target_dir / unique_name
        path.write_bytes(data)
        return StoredFile(url=f"{PUBLIC_PREFIX}/{subdir}/{unique_name}", path=path, size=len(data))


def get_upload_storage() -> UploadStorage:
    return UploadStorage(settings.UPLOAD_ROOT, settings.MAX_UPLOAD_SIZE)
