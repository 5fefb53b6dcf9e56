"""Service helpers for role management."""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from ams.core.exceptions import ConflictError
from ams.models.role import Role
from ams.services.users import Page

logger = logging.getLogger(__name__)


def _find_by_name(db: Session, name: str) -> Role | None:
    return db.scalars(select(Role).where(Role.name == name)).first()


def get_role(db: Session, role_id: str | UUID) -> Role | None:
    try:
        role_uuid = role_id if isinstance(role_id, UUID) else UUID(str(role_id))
    except ValueError:
        return None
    return db.get(Role, role_uuid)


def create_role(db: Session, *, name: str, description: str, is_active: bool = True) -> Role:
    if _find_by_name(db, name):
        raise ConflictError("role_name_exists", details={"name": name})
    role = Role(name=name, description=description, is_active=is_active)
    db.add(role)
    db.commit()
    db.refresh(role)
    logger.info("Role created: %s", role.name)
    return role


def list_roles(
    db: Session,
    *,
    page_number: int = 1,
    page_size: int = 10,
    is_active: bool | None = None,
    search: str | None = None,
) -> Page:
    stmt = select(Role)
    if is_active is not None:
        stmt = stmt.where(Role.is_active.is_(is_active))
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(or_(Role.name.ilike(pattern), Role.description.ilike(pattern)))

    total = db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
    rows = db.scalars(
        stmt.order_by(Role.name.asc()).offset((page_number - 1) * page_size).limit(page_size)
    ).all()
    return Page(items=list(rows), total_count=total, page_number=page_number, page_size=page_size)


def update_role(
    db: Session,
    role_id: str | UUID,
    *,
    name: str,
    description: str,
    is_active: bool,
) -> Role | None:
    role = get_role(db, role_id)
    if not role:
        logger.warning("Role update failed (not found): %s", role_id)
        return None
    if name != role.name:
        existing = _find_by_name(db, name)
        if existing and existing.id != role.id:
            raise ConflictError("role_name_exists", details={"name": name})

    role.update_details(name=name, description=description, is_active=is_active)
    db.add(role)
    db.commit()
    db.refresh(role)
    logger.info("Role updated: %s", role.name)
    return role


def delete_role(db: Session, role_id: str | UUID) -> bool:
    role = get_role(db, role_id)
    if not role:
        logger.warning("Role delete failed (not found): %s", role_id)
        return False
    db.delete(role)
    db.commit()
    logger.info("Role deleted: %s", role.name)
    return True
