import structlog
from fastapi import Depends, Request

from ...domain.entities import Role, SessionRecord
from ...domain.errors import Unauthenticated, Forbidden
from ...infrastructure.session import SessionManager, get_session_manager

logger = structlog.get_logger()


def get_session(request: Request, sessions: SessionManager = Depends(get_session_manager)) -> SessionRecord:
    return sessions.load(request)


def require_auth(record: SessionRecord = Depends(get_session)) -> SessionRecord:
    if not record.is_logged_in or not record.user_id:
        raise Unauthenticated()
    return record


def ensure_role(record: SessionRecord, role: Role, message: str | None = None) -> SessionRecord:
    if record.role != role:
        logger.warning("access_denied", category="security",
                       user_id=record.user_id, role=record.role, required=role)
        raise Forbidden(message or f"Forbidden: {role.value.capitalize()} access required")
    return record


def require_admin(record: SessionRecord = Depends(require_auth)) -> SessionRecord:
    return ensure_role(record, Role.ADMIN)


def require_student(record: SessionRecord = Depends(require_auth)) -> SessionRecord:
    return ensure_role(record, Role.STUDENT, "Only students can submit assignments")
