"""Refresh token model used for session rotation and revocation.

Rows are never deleted by the application. A record moves from active to
revoked exactly once, through ``revoke`` or ``rotate``; expiry is derived
from ``expires_at`` and never stored. ``version`` is the mapper's version
counter, so every UPDATE is conditional on the version that was read and a
concurrent writer surfaces as ``StaleDataError`` on flush.
"""

from __future__ import annotations

import datetime as dt
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from ams.db.base import Base
from ams.db.types import UTCDateTime

ROTATION_REASON = "Replaced by new token"
REVOKE_ALL_REASON = "All tokens revoked"
LOGOUT_REASON = "Revoked by user"


class RefreshToken(Base):
    __tablename__ = "refresh_tokens"
    __table_args__ = (CheckConstraint("expires_at > issued_at", name="ck_refresh_tokens_expiry_after_issue"),)

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token: Mapped[str] = mapped_column(String(256), unique=True, index=True, nullable=False)
    issued_at: Mapped[dt.datetime] = mapped_column(UTCDateTime, nullable=False)
    expires_at: Mapped[dt.datetime] = mapped_column(UTCDateTime, nullable=False)
    revoked_at: Mapped[dt.datetime | None] = mapped_column(UTCDateTime, nullable=True)
    replaced_by_token: Mapped[str | None] = mapped_column(String(256), nullable=True)
    reason_revoked: Mapped[str | None] = mapped_column(String(500), nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    @classmethod
    def issue(cls, user_id: UUID, token: str, *, at: dt.datetime, lifetime: dt.timedelta) -> "RefreshToken":
        if lifetime <= dt.timedelta(0):
            raise ValueError("refresh_token_lifetime_must_be_positive")
        return cls(user_id=user_id, token=token, issued_at=at, expires_at=at + lifetime)

    @property
    def is_revoked(self) -> bool:
        return self.revoked_at is not None

    def is_expired(self, at: dt.datetime) -> bool:
        return at >= self.expires_at

    def is_active(self, at: dt.datetime) -> bool:
        return not self.is_revoked and not self.is_expired(at)

    def revoke(self, reason: str, at: dt.datetime) -> None:
        if self.is_revoked:
            raise ValueError("refresh_token_already_revoked")
        self.revoked_at = at
        self.reason_revoked = reason

    def rotate(self, replacement: "RefreshToken", at: dt.datetime) -> None:
        if replacement.user_id != self.user_id:
            raise ValueError("replacement_belongs_to_another_user")
        if replacement.token == self.token:
            raise ValueError("replacement_reuses_token_value")
        self.revoke(ROTATION_REASON, at)
        self.replaced_by_token = replacement.token

    def __repr__(self) -> str:
        return f"<RefreshToken id={self.id} user_id={self.user_id} revoked={self.is_revoked}>"
