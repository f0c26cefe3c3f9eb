import structlog
from fastapi import APIRouter, Depends, File, Form, UploadFile

from ....domain.entities import Role, SessionRecord
from ....domain.errors import ValidationFailed, Forbidden
from ....infrastructure.storage import UploadStorage, get_upload_storage, ALLOWED_FILE_TYPES, UPLOAD_DIRS
from ..authz import require_auth
from ..schemas import UploadResp

router = APIRouter(prefix="/api/upload", tags=["upload"])
logger = structlog.get_logger()


def _reject(field: str, message: str):
    raise ValidationFailed([{"field": field, "message": message}], message)


@router.post("", response_model=UploadResp)
def upload(
    file: UploadFile | None = File(None),
    type: str = Form("submission"),
    record: SessionRecord = Depends(require_auth),
    storage: UploadStorage = Depends(get_upload_storage),
):
    if file is None or not file.filename:
        _reject("file", "No file provided")
    if type not in UPLOAD_DIRS:
        _reject("type", "type must be 'assignment' or 'submission'")
    if type == "assignment" and record.role != Role.ADMIN:
        raise Forbidden("Only admins can upload assignment files")
    if not storage.is_allowed_type(file.content_type):
        _reject("file", "Invalid file type. Allowed: PDF, Word, Excel, Text, Images")

    # читаем на байт больше лимита, чтобы не тянуть в память огромные файлы целиком
    data = file.file.read(storage.max_size + 1)
    if storage.is_too_large(len(data)):
        _reject("file", f"File too large. Maximum size is {storage.max_size // (1024 * 1024)}MB")

    stored = storage.save(type, file.filename, data)
    logger.info(
        "file_uploaded",
        user_id=record.user_id,
        file_name=file.filename,
        file_size=stored.size,
        file_type=file.content_type,
        upload_path=stored.url,
    )
    return UploadResp(
        file_url=stored.url,
        file_name=file.filename,
        file_size=stored.size,
        file_type=file.content_type,
    )
