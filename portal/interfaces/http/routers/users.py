import structlog
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ....domain.entities import Role, SessionRecord
from ....domain.errors import NotFound, Conflict
from ....infrastructure.db import get_db
from ....infrastructure.models import User
from ....infrastructure.repositories import UserRepository
from ....infrastructure.security import PasswordHasher
from ....application.dto import RegisterUserInput
from ....application.use_cases.register_user import RegisterUser
from ..authz import require_admin
from ..schemas import CreateUserReq, UpdateUserReq, UserResp, UserListItem, UserEnvelope, UsersEnvelope, MessageResp

router = APIRouter(prefix="/api/users", tags=["users"])
logger = structlog.get_logger()


@router.get("", response_model=UsersEnvelope, dependencies=[Depends(require_admin)])
def list_users(role: Role | None = Query(None), db: Session = Depends(get_db)):
    q = db.query(User)
    if role is not None:
        q = q.filter(User.role == role.value)
    rows = q.order_by(User.created_at.desc()).all()
    users = [
        UserListItem(
            **UserResp.model_validate(row).model_dump(),
            enrollment_count=len(row.enrollments),
            submission_count=len(row.submissions),
        )
        for row in rows
    ]
    return UsersEnvelope(users=users)


@router.post("", response_model=UserEnvelope, status_code=status.HTTP_201_CREATED)
def create_user(payload: CreateUserReq, admin: SessionRecord = Depends(require_admin), db: Session = Depends(get_db)):
    uc = RegisterUser(repo=UserRepository(db), hasher=PasswordHasher())
    user = uc.execute(RegisterUserInput(
        name=payload.name,
        email=payload.email,
        password=payload.password,
        role=payload.role or Role.STUDENT,
    ))
    logger.info("user_created_by_admin", category="security",
                user_id=user.id, role=user.role, admin_id=admin.user_id)
    return UserEnvelope(user=UserResp.model_validate(user))


@router.patch("/{user_id}", response_model=UserEnvelope, dependencies=[Depends(require_admin)])
def update_user(user_id: str, payload: UpdateUserReq, db: Session = Depends(get_db)):
    row = db.get(User, user_id)
    if not row: raise NotFound("User not found")

    if payload.email is not None and payload.email != row.email:
        taken = db.query(User.id).filter(User.email == payload.email).first()
        if taken: raise Conflict("Email already in use")
        row.email = payload.email
    if payload.name is not None: row.name = payload.name
    if payload.role is not None: row.role = payload.role.value
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Email already in use")
    db.refresh(row)
    logger.info("user_updated_by_admin", category="security", user_id=row.id)
    return UserEnvelope(user=UserResp.model_validate(row))


@router.delete("/{user_id}", response_model=MessageResp, dependencies=[Depends(require_admin)])
def delete_user(user_id: str, db: Session = Depends(get_db)):
    row = db.get(User, user_id)
    if not row: raise NotFound("User not found")
    db.delete(row); db.commit()
    logger.info("user_deleted_by_admin", category="security", user_id=user_id)
    return MessageResp(message="User deleted successfully")
