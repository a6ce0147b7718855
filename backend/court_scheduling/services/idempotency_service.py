"""
Idempotency store for slot allocation.

A scheduler who double-clicks "Schedule", or whose browser retries after a
dropped connection, sends the same Idempotency-Key again. The first
successful response is kept per (key, user) and replayed; the allocation
itself runs once.

A key is bound to the endpoint it was first used on. Sending it again for
a different schedule request is a client bug and fails with 409 instead of
replaying an unrelated booking.

    cached = get_idempotent_response(key, current_user.id, db, endpoint=path)
    if cached:
        status_code, body = cached
        return JSONResponse(body, status_code=status_code)
    ...
    store_idempotent_response(key, current_user.id, 200, body, db, endpoint=path)
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta
from typing import Optional, Union

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from court_scheduling.core.config import settings
from court_scheduling.db.models import IdempotencyRecord
from court_scheduling.utils.exceptions import IdempotencyKeyReusedError

logger = logging.getLogger(__name__)

UserId = Union[str, uuid.UUID]


def _owner(user_id: UserId) -> Optional[uuid.UUID]:
    if isinstance(user_id, uuid.UUID):
        return user_id
    try:
        return uuid.UUID(str(user_id))
    except ValueError:
        return None


def _live_record(db: Session, key: str, owner: uuid.UUID) -> Optional[IdempotencyRecord]:
    return (
        db.query(IdempotencyRecord)
        .filter(
            IdempotencyRecord.idempotency_key == key,
            IdempotencyRecord.user_id == owner,
            IdempotencyRecord.expires_at > datetime.utcnow(),
        )
        .first()
    )


def get_idempotent_response(
    key: Optional[str],
    user_id: UserId,
    db: Session,
    endpoint: Optional[str] = None,
) -> Optional[tuple[int, dict]]:
    """
    (status_code, body) stored for this key and user, or None when there is
    nothing to replay. Raises IdempotencyKeyReusedError when the key belongs
    to another endpoint.
    """
    owner = _owner(user_id) if key else None
    if owner is None:
        return None

    record = _live_record(db, key, owner)
    if record is None:
        return None

    if endpoint and record.endpoint and record.endpoint != endpoint:
        logger.warning(
            "Idempotency key %s reused by user %s: stored for %s, sent to %s",
            key, owner, record.endpoint, endpoint,
        )
        raise IdempotencyKeyReusedError()

    logger.info("Replaying stored response for key %s (%s)", key, record.endpoint)
    return record.status_code, record.response_body


def store_idempotent_response(
    key: Optional[str],
    user_id: UserId,
    status_code: int,
    response_body: dict,
    db: Session,
    endpoint: str = "",
    ttl_hours: Optional[int] = None,
) -> None:
    """
    Keeps the response; when two submits race on one key the earlier row stays.

    Runs after the work it records has committed, so a storage failure here
    is logged and rolled back but never raised: the caller still returns its
    result, only the replay is lost.
    """
    owner = _owner(user_id) if key else None
    if owner is None:
        return

    stored_at = datetime.utcnow()
    lifetime = timedelta(hours=ttl_hours or settings.IDEMPOTENCY_TTL_HOURS)
    db.add(IdempotencyRecord(
        idempotency_key=key,
        user_id=owner,
        endpoint=endpoint,
        status_code=status_code,
        response_body=response_body,
        created_at=stored_at,
        expires_at=stored_at + lifetime,
    ))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.debug("Key %s already stored for user %s", key, owner)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Could not store response for key %s (user %s); replay disabled", key, owner)


def delete_expired_idempotency_records(db: Session) -> int:
    removed = (
        db.query(IdempotencyRecord)
        .filter(IdempotencyRecord.expires_at < datetime.utcnow())
        .delete(synchronize_session=False)
    )
    db.commit()
    if removed:
        logger.info("Removed %d expired idempotency records", removed)
    return removed
