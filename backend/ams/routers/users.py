"""Admin endpoints for user management, guarded by an API key."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from ams.core.deps import get_session_manager, require_api_key
from ams.core.exceptions import NotFoundError
from ams.db.session import get_db
from ams.models.user import User
from ams.schemas.user import (
    ChangePasswordRequest,
    PagedUsersOut,
    RevokeTokensRequest,
    RevokeTokensResponse,
    SessionOut,
    UserCreate,
    UserOut,
    UserUpdate,
)
from ams.services.auth import CredentialSessionManager
from ams.services.roles import get_role
from ams.services.users import (
    assign_role,
    change_password,
    create_user,
    deactivate_user,
    get_user,
    list_users,
    remove_role,
    update_user,
)

router = APIRouter(dependencies=[Depends(require_api_key)])


def _get_user_or_404(db: Session, user_id: str) -> User:
    user = get_user(db, user_id)
    if not user:
        raise NotFoundError("user_not_found", details={"user_id": user_id})
    return user


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def add_user(payload: UserCreate, response: Response, db: Session = Depends(get_db)) -> UserOut:
    user = create_user(
        db,
        first_name=payload.first_name,
        last_name=payload.last_name,
        email=payload.email,
        password=payload.password,
    )
    response.headers["Location"] = f"/api/users/{user.id}"
    return UserOut.model_validate(user)


@router.get("", response_model=PagedUsersOut)
def get_users(
    page_number: int = Query(default=1, ge=1),
    page_size: int = Query(default=10, ge=1, le=100),
    is_active: bool | None = None,
    search: str | None = Query(default=None, max_length=100),
    db: Session = Depends(get_db),
) -> PagedUsersOut:
    page = list_users(db, page_number=page_number, page_size=page_size, is_active=is_active, search=search)
    return PagedUsersOut(
        users=[UserOut.model_validate(u) for u in page.items],
        total_count=page.total_count,
        page_number=page.page_number,
        page_size=page.page_size,
        total_pages=page.total_pages,
    )


@router.get("/{user_id}", response_model=UserOut)
def get_single_user(user_id: str, db: Session = Depends(get_db)) -> UserOut:
    return UserOut.model_validate(_get_user_or_404(db, user_id))


@router.put("/{user_id}", response_model=UserOut)
def put_user(user_id: str, payload: UserUpdate, db: Session = Depends(get_db)) -> UserOut:
    user = update_user(
        db,
        user_id,
        first_name=payload.first_name,
        last_name=payload.last_name,
        email=payload.email,
        is_active=payload.is_active,
    )
    if not user:
        raise NotFoundError("user_not_found", details={"user_id": user_id})
    return UserOut.model_validate(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response, response_model=None)
def remove_user(user_id: str, db: Session = Depends(get_db)) -> Response:
    if not deactivate_user(db, user_id):
        raise NotFoundError("user_not_found", details={"user_id": user_id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{user_id}/password", status_code=status.HTTP_204_NO_CONTENT, response_class=Response, response_model=None)
def put_password(user_id: str, payload: ChangePasswordRequest, db: Session = Depends(get_db)) -> Response:
    user = change_password(
        db,
        user_id,
        current_password=payload.current_password,
        new_password=payload.new_password,
    )
    if not user:
        raise NotFoundError("user_not_found", details={"user_id": user_id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{user_id}/roles/{role_id}", response_model=UserOut)
def add_role(user_id: str, role_id: str, db: Session = Depends(get_db)) -> UserOut:
    user = _get_user_or_404(db, user_id)
    role = get_role(db, role_id)
    if not role:
        raise NotFoundError("role_not_found", details={"role_id": role_id})
    return UserOut.model_validate(assign_role(db, user, role))


@router.delete("/{user_id}/roles/{role_id}", response_model=UserOut)
def drop_role(user_id: str, role_id: str, db: Session = Depends(get_db)) -> UserOut:
    user = _get_user_or_404(db, user_id)
    role = get_role(db, role_id)
    if not role:
        raise NotFoundError("role_not_found", details={"role_id": role_id})
    return UserOut.model_validate(remove_role(db, user, role))


@router.get("/{user_id}/sessions", response_model=list[SessionOut])
def get_sessions(
    user_id: str,
    db: Session = Depends(get_db),
    manager: CredentialSessionManager = Depends(get_session_manager),
) -> list[SessionOut]:
    user = _get_user_or_404(db, user_id)
    return [SessionOut.model_validate(record) for record in manager.list_sessions(user.id)]


@router.post("/{user_id}/revoke-tokens", response_model=RevokeTokensResponse)
def revoke_tokens(
    user_id: str,
    payload: RevokeTokensRequest | None = None,
    db: Session = Depends(get_db),
    manager: CredentialSessionManager = Depends(get_session_manager),
) -> RevokeTokensResponse:
    user = _get_user_or_404(db, user_id)
    reason = payload.reason if payload else RevokeTokensRequest().reason
    return RevokeTokensResponse(revoked=manager.revoke_all_for_user(user.id, reason))
