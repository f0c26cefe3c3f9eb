import structlog
from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from ....config import settings
from ....domain.entities import SessionRecord
from ....domain.errors import NotFound, Unauthenticated
from ....infrastructure.db import get_db
from ....infrastructure.metrics import auth_attempts_total
from ....infrastructure.rate_limit import limiter
from ....infrastructure.repositories import UserRepository
from ....infrastructure.security import PasswordHasher
from ....infrastructure.session import SessionManager, get_session_manager
from ....application.dto import RegisterUserInput
from ....application.use_cases.register_user import RegisterUser
from ....application.use_cases.authenticate_user import AuthenticateUser
from ..authz import get_session, require_auth
from ..schemas import RegisterReq, LoginReq, RegisterResp, LoginResp, LoginUser, UserResp, UserEnvelope, MessageResp

router = APIRouter(prefix="/api/auth", tags=["auth"])
logger = structlog.get_logger()


@router.post("/register", response_model=RegisterResp, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.REGISTER_RATE_LIMIT)
def register(request: Request, payload: RegisterReq, db: Session = Depends(get_db)):
    uc = RegisterUser(repo=UserRepository(db), hasher=PasswordHasher())
    user = uc.execute(RegisterUserInput(name=payload.name, email=payload.email, password=payload.password))
    logger.info("user_registered", category="security", user_id=user.id, email=user.email)
    return RegisterResp(message="Registration successful", user=UserResp.model_validate(user))


@router.post("/login", response_model=LoginResp)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
def login(
    request: Request,
    response: Response,
    payload: LoginReq,
    db: Session = Depends(get_db),
    sessions: SessionManager = Depends(get_session_manager),
):
    uc = AuthenticateUser(repo=UserRepository(db), hasher=PasswordHasher())
    try:
        user = uc.execute(payload.email, payload.password)
    except Unauthenticated:
        auth_attempts_total.labels(outcome="invalid_credentials").inc()
        raise

    sessions.establish(response, SessionRecord.for_user(user))
    auth_attempts_total.labels(outcome="success").inc()
    logger.info("login_succeeded", category="security", user_id=user.id, email=user.email, role=user.role)
    return LoginResp(message="Login successful", user=LoginUser.model_validate(user))


@router.post("/logout", response_model=MessageResp)
def logout(
    response: Response,
    record: SessionRecord = Depends(get_session),
    sessions: SessionManager = Depends(get_session_manager),
):
    sessions.destroy(response)
    if record.user_id:
        logger.info("user_logged_out", category="security", user_id=record.user_id)
    return MessageResp(message="Logout successful")


@router.get("/me", response_model=UserEnvelope)
def me(record: SessionRecord = Depends(require_auth), db: Session = Depends(get_db)):
    user = UserRepository(db).get_by_id(record.user_id)
    if user is None:
        raise NotFound("User not found")
    return UserEnvelope(user=UserResp.model_validate(user))
