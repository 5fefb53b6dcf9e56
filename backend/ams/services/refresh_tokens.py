"""Refresh token store: persistence for the RefreshToken aggregate only."""

from __future__ import annotations

import datetime as dt
import logging
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ams.core.clock import Clock, utcnow
from ams.core.exceptions import PersistenceError, TokenConflictError
from ams.models.refresh_token import REVOKE_ALL_REASON, RefreshToken

logger = logging.getLogger(__name__)


class RefreshTokenStore:
    def __init__(self, db: Session, clock: Clock = utcnow) -> None:
        self._db = db
        self._clock = clock

    def insert(self, record: RefreshToken) -> None:
        self._db.add(record)

    def update(self, record: RefreshToken) -> None:
        # Tracked instances are flushed with a version-guarded UPDATE.
        self._db.add(record)

    def find_by_token(self, token: str) -> RefreshToken | None:
        if not token:
            return None
        return self._db.scalars(select(RefreshToken).where(RefreshToken.token == token)).first()

    def find_by_user_id(self, user_id: UUID) -> list[RefreshToken]:
        stmt = select(RefreshToken).where(RefreshToken.user_id == user_id).order_by(RefreshToken.issued_at)
        return list(self._db.scalars(stmt).all())

    def revoke_all_active_for_user(self, user_id: UUID, reason: str = REVOKE_ALL_REASON) -> int:
        now: dt.datetime = self._clock()
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.user_id == user_id, RefreshToken.revoked_at.is_(None))
            .values(
                revoked_at=now,
                reason_revoked=reason,
                version=RefreshToken.version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        try:
            result = self._db.execute(stmt)
        except SQLAlchemyError as exc:
            self._db.rollback()
            logger.exception("Bulk refresh token revoke failed for user %s", user_id)
            raise PersistenceError("refresh_token_revoke_failed") from exc
        self.commit()
        return int(result.rowcount or 0)

    def commit(self) -> None:
        try:
            self._db.commit()
        except StaleDataError as exc:
            self._db.rollback()
            logger.warning("Refresh token changed concurrently; pending writes discarded")
            raise TokenConflictError() from exc
        except SQLAlchemyError as exc:
            self._db.rollback()
            logger.exception("Refresh token commit failed")
            raise PersistenceError("refresh_token_commit_failed") from exc
        except BaseException:
            self._db.rollback()
            raise
