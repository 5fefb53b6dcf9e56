"""User directory lookups and admin user management."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from ams.core.exceptions import BadRequestError, ConflictError
from ams.core.security import hash_password, verify_password
from ams.models.role import Role
from ams.models.user import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Page:
    items: list
    total_count: int
    page_number: int
    page_size: int

    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return -(-self.total_count // self.page_size)


def _parse_uuid(value: str | UUID) -> UUID | None:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        return None


def find_user_by_email(db: Session, email: str) -> User | None:
    return db.scalars(select(User).where(User.email == email.strip().lower())).first()


def find_active_user_by_email(db: Session, email: str) -> User | None:
    return db.scalars(
        select(User).where(User.email == email.strip().lower(), User.is_active.is_(True))
    ).first()


def find_active_user_by_id(db: Session, user_id: str | UUID) -> User | None:
    user_uuid = _parse_uuid(user_id)
    if user_uuid is None:
        return None
    user = db.get(User, user_uuid)
    if not user or not user.is_active:
        return None
    return user


class SqlUserDirectory:
    """User lookup consumed by the session manager."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def find_active_user_by_email(self, email: str) -> User | None:
        return find_active_user_by_email(self._db, email)

    def find_active_user_by_id(self, user_id: str | UUID) -> User | None:
        return find_active_user_by_id(self._db, user_id)


def get_user(db: Session, user_id: str | UUID) -> User | None:
    user_uuid = _parse_uuid(user_id)
    if user_uuid is None:
        return None
    return db.get(User, user_uuid)


def create_user(db: Session, *, first_name: str, last_name: str, email: str, password: str) -> User:
    normalized_email = email.strip().lower()
    if find_user_by_email(db, normalized_email):
        raise ConflictError("email_exists", details={"email": normalized_email})

    user = User(
        first_name=first_name,
        last_name=last_name,
        email=normalized_email,
        password_hash=hash_password(password),
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("User created: %s", user.email)
    return user


def list_users(
    db: Session,
    *,
    page_number: int = 1,
    page_size: int = 10,
    is_active: bool | None = None,
    search: str | None = None,
) -> Page:
    stmt = select(User)
    if is_active is not None:
        stmt = stmt.where(User.is_active.is_(is_active))
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(
            or_(User.first_name.ilike(pattern), User.last_name.ilike(pattern), User.email.ilike(pattern))
        )

    total = db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
    rows = db.scalars(
        stmt.order_by(User.last_name.asc(), User.first_name.asc(), User.id.asc())
        .offset((page_number - 1) * page_size)
        .limit(page_size)
    ).all()
    return Page(items=list(rows), total_count=total, page_number=page_number, page_size=page_size)


def update_user(
    db: Session,
    user_id: str | UUID,
    *,
    first_name: str,
    last_name: str,
    email: str,
    is_active: bool,
) -> User | None:
    user = get_user(db, user_id)
    if not user:
        logger.warning("User update failed (not found): %s", user_id)
        return None

    normalized_email = email.strip().lower()
    if normalized_email != user.email:
        existing = find_user_by_email(db, normalized_email)
        if existing and existing.id != user.id:
            raise ConflictError("email_exists", details={"email": normalized_email})
        user.email = normalized_email

    user.first_name = first_name
    user.last_name = last_name
    user.is_active = is_active
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("User updated: %s", user.email)
    return user


def deactivate_user(db: Session, user_id: str | UUID) -> bool:
    user = get_user(db, user_id)
    if not user:
        logger.warning("User delete failed (not found): %s", user_id)
        return False
    user.is_active = False
    db.add(user)
    db.commit()
    logger.info("User deactivated: %s", user.email)
    return True


def change_password(db: Session, user_id: str | UUID, *, current_password: str, new_password: str) -> User | None:
    user = get_user(db, user_id)
    if not user:
        return None
    if not user.is_active:
        raise BadRequestError("user_inactive")
    if not verify_password(current_password, user.password_hash):
        logger.warning("Password change failed: current password mismatch (%s)", user.email)
        raise BadRequestError("invalid_current_password")
    if current_password == new_password:
        raise BadRequestError("new_password_must_differ")

    user.password_hash = hash_password(new_password)
    db.add(user)
    db.commit()
    logger.info("Password changed: %s", user.email)
    return user


def assign_role(db: Session, user: User, role: Role) -> User:
    if role not in user.roles:
        user.roles.append(role)
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info("Role %s assigned to %s", role.name, user.email)
    return user


def remove_role(db: Session, user: User, role: Role) -> User:
    if role in user.roles:
        user.roles.remove(role)
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info("Role %s removed from %s", role.name, user.email)
    return user
