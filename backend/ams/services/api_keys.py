"""API key issuance and lookup."""

from __future__ import annotations

import datetime as dt
import logging
import secrets

from sqlalchemy import select
from sqlalchemy.orm import Session

from ams.core.clock import utcnow
from ams.models.api_key import ApiKey

logger = logging.getLogger(__name__)

DEFAULT_API_KEY_LIFETIME = dt.timedelta(days=365)


def issue_api_key(
    db: Session,
    description: str,
    *,
    lifetime: dt.timedelta = DEFAULT_API_KEY_LIFETIME,
    now: dt.datetime | None = None,
) -> ApiKey:
    issued_at = now or utcnow()
    api_key = ApiKey(
        key=secrets.token_urlsafe(48),
        description=description[:100],
        is_active=True,
        created_at=issued_at,
        expires_at=issued_at + lifetime,
    )
    db.add(api_key)
    db.commit()
    db.refresh(api_key)
    logger.info("API key issued: %s (expires %s)", api_key.description, api_key.expires_at.isoformat())
    return api_key


def find_valid_api_key(db: Session, key: str, now: dt.datetime | None = None) -> ApiKey | None:
    if not key:
        return None
    api_key = db.scalars(select(ApiKey).where(ApiKey.key == key)).first()
    if not api_key or not api_key.is_valid(now or utcnow()):
        return None
    return api_key
