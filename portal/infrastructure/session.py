from __future__ import annotations

import base64
import hashlib
import json

from cryptography.fernet import Fernet, InvalidToken
from starlette.requests import Request
from starlette.responses import Response

from ..config import settings
from ..domain.entities import Role, SessionRecord


def _derive_key(secret: str) -> bytes:
    # Fernet ждёт 32 байта в urlsafe base64
    return base64.urlsafe_b64encode(hashlib.sha256(secret.encode("utf-8")).digest())


class SessionManager:
    """Сессия целиком хранится в cookie, зашифрованной Fernet; срок жизни проверяется и при чтении."""

    def __init__(
        self,
        secret: str,
        cookie_name: str = "student_portal_session",
        max_age: int = 60 * 60 * 24 * 7,
        secure: bool = False,
    ):
        self._fernet = Fernet(_derive_key(secret))
        self.cookie_name = cookie_name
        self.max_age = max_age
        self.secure = secure

    def seal(self, record: SessionRecord, issued_at: int | None = None) -> str:
        payload = json.dumps({
            "userId": record.user_id,
            "email": record.email,
            "role": record.role.value if record.role else None,
            "isLoggedIn": record.is_logged_in,
        }).encode("utf-8")
        if issued_at is None:
            token = self._fernet.encrypt(payload)
        else:
            token = self._fernet.encrypt_at_time(payload, issued_at)
        return token.decode("ascii")

    def unseal(self, token: str | None) -> SessionRecord:
        """Не бросает исключений: всё, что не расшифровалось, считается анонимной сессией."""
        if not token:
            return SessionRecord.anonymous()
        try:
            raw = self._fernet.decrypt(token.encode("utf-8"), ttl=self.max_age)
            data = json.loads(raw)
            record = SessionRecord(
                user_id=data["userId"],
                email=data["email"],
                role=Role(data["role"]),
                is_logged_in=bool(data["isLoggedIn"]),
            )
        except (InvalidToken, ValueError, KeyError, TypeError):
            return SessionRecord.anonymous()
        if not record.is_logged_in or not record.user_id:
            return SessionRecord.anonymous()
        return record

    def load(self, request: Request) -> SessionRecord:
        return self.unseal(request.cookies.get(self.cookie_name))

    def establish(self, response: Response, record: SessionRecord) -> None:
        response.set_cookie(
            key=self.cookie_name,
            value=self.seal(record),
            max_age=self.max_age,
            path="/",
            httponly=True,
            secure=self.secure,
            samesite="strict",
        )

    def destroy(self, response: Response) -> None:
        response.delete_cookie(
            key=self.cookie_name,
            path="/",
            httponly=True,
            secure=self.secure,
            samesite="strict",
        )


_manager: SessionManager | None = None


def get_session_manager() -> SessionManager:
    global _manager
    if _manager is None:
        _manager = SessionManager(
            secret=settings.SESSION_SECRET,
            cookie_name=settings.SESSION_COOKIE_NAME,
            max_age=settings.SESSION_MAX_AGE,
            secure=settings.is_production,
        )
    return _manager
