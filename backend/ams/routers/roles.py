"""Admin endpoints for role management, guarded by an API key."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from ams.core.deps import require_api_key
from ams.core.exceptions import NotFoundError
from ams.db.session import get_db
from ams.schemas.role import PagedRolesOut, RoleCreate, RoleOut, RoleUpdate
from ams.services.roles import create_role, delete_role, get_role, list_roles, update_role

router = APIRouter(dependencies=[Depends(require_api_key)])


@router.post("", response_model=RoleOut, status_code=status.HTTP_201_CREATED)
def add_role(payload: RoleCreate, response: Response, db: Session = Depends(get_db)) -> RoleOut:
    role = create_role(db, name=payload.name, description=payload.description, is_active=payload.is_active)
    response.headers["Location"] = f"/api/roles/{role.id}"
    return RoleOut.model_validate(role)


@router.get("", response_model=PagedRolesOut)
def get_roles(
    page_number: int = Query(default=1, ge=1),
    page_size: int = Query(default=10, ge=1, le=100),
    is_active: bool | None = None,
    search: str | None = Query(default=None, max_length=100),
    db: Session = Depends(get_db),
) -> PagedRolesOut:
    page = list_roles(db, page_number=page_number, page_size=page_size, is_active=is_active, search=search)
    return PagedRolesOut(
        roles=[RoleOut.model_validate(r) for r in page.items],
        total_count=page.total_count,
        page_number=page.page_number,
        page_size=page.page_size,
        total_pages=page.total_pages,
    )


@router.get("/{role_id}", response_model=RoleOut)
def get_single_role(role_id: str, db: Session = Depends(get_db)) -> RoleOut:
    role = get_role(db, role_id)
    if not role:
        raise NotFoundError("role_not_found", details={"role_id": role_id})
    return RoleOut.model_validate(role)


@router.put("/{role_id}", response_model=RoleOut)
def put_role(role_id: str, payload: RoleUpdate, db: Session = Depends(get_db)) -> RoleOut:
    role = update_role(db, role_id, name=payload.name, description=payload.description, is_active=payload.is_active)
    if not role:
        raise NotFoundError("role_not_found", details={"role_id": role_id})
    return RoleOut.model_validate(role)


@router.delete("/{role_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response, response_model=None)
def remove_role(role_id: str, db: Session = Depends(get_db)) -> Response:
    if not delete_role(db, role_id):
        raise NotFoundError("role_not_found", details={"role_id": role_id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
