from __future__ import annotations

import logging
import math
import secrets
import string
import time
from datetime import datetime, timezone
from email.utils import formatdate

from pydantic import AnyUrl, TypeAdapter, ValidationError
from sqlalchemy import delete, insert
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from redirector.cache import evict, get_cached, put_cached
from redirector.config import settings
from redirector.errors import Expired, InvalidTtl, InvalidUrl, MissingId, NotFound
from redirector.models import Redirect

logger = logging.getLogger(__name__)

# Base62: a-z A-Z 0-9
BASE62_ALPHABET = string.ascii_letters + string.digits

# last instant datetime and HTTP dates can render: 9999-12-31T23:59:59Z
MAX_EXPIRES_MS = int(datetime(9999, 12, 31, 23, 59, 59, tzinfo=timezone.utc).timestamp()) * 1000

_url_adapter = TypeAdapter(AnyUrl)


def now_ms() -> int:
    return int(time.time() * 1000)


def generate_id(length: int) -> str:
    return "".join(secrets.choice(BASE62_ALPHABET) for _ in range(length))


def parse_target_url(raw: str | None) -> str:
    """
    Accept only absolute URLs. Returns the normalized form that gets stored.
    """
    if not raw:
        raise InvalidUrl()
    try:
        return str(_url_adapter.validate_python(raw))
    except ValidationError as e:
        logger.debug("invalid url %r: %s", raw, e.errors()[0]["msg"])
        raise InvalidUrl() from e


def parse_ttl(raw: str | None) -> int:
    """
    Missing or empty means the default (3 days).
    Otherwise a whole, finite, non-negative number of seconds ("100" or "100.0").
    """
    if raw is None or not raw.strip():
        return settings.default_ttl_seconds
    try:
        value = float(raw)
    except ValueError as e:
        logger.debug("invalid expires %r", raw)
        raise InvalidTtl() from e
    if not math.isfinite(value) or value < 0 or not value.is_integer():
        logger.debug("invalid expires %r", raw)
        raise InvalidTtl()
    return int(value)


def is_expired(row: Redirect, now: int) -> bool:
    return now >= row.expires_at_ms


def expires_at(row: Redirect) -> datetime:
    return datetime.fromtimestamp(row.expires_at_ms / 1000, tz=timezone.utc)


def expires_http_date(row: Redirect) -> str:
    return formatdate(row.expires_at_ms / 1000, usegmt=True)


def _row_values(row: Redirect) -> dict:
    return {
        "id": row.id,
        "redirect_url": row.target_url,
        "created_at": row.created_at,
        "expires": row.ttl_seconds,
    }


def _insert_if_absent(db: Session, row: Redirect) -> bool:
    """
    Single-statement conditional insert where the dialect has ON CONFLICT.
    Returns False when the id is already taken.
    """
    values = _row_values(row)
    table = Redirect.__table__
    dialect = db.get_bind().dialect.name

    if dialect == "postgresql":
        stmt = postgresql.insert(table).values(values).on_conflict_do_nothing(index_elements=["id"])
    elif dialect == "sqlite":
        stmt = sqlite.insert(table).values(values).on_conflict_do_nothing(index_elements=["id"])
    else:
        if db.get(Redirect, row.id) is not None:
            return False
        stmt = insert(table).values(values)

    return db.execute(stmt).rowcount == 1


def create_mapping(db: Session, raw_url: str | None, raw_ttl: str | None) -> Redirect:
    """
    Validates input, picks a free random id and stores the mapping.

    Retries on id collision up to settings.id_max_attempts times. When every
    attempt collides the last id is inserted unconditionally, so the store's
    primary key decides (an IntegrityError propagates to the caller).
    """
    target_url = parse_target_url(raw_url)
    ttl_seconds = parse_ttl(raw_ttl)
    created_at = now_ms()
    if created_at + ttl_seconds * 1000 > MAX_EXPIRES_MS:
        logger.debug("expires %r lands past year 9999", raw_ttl)
        raise InvalidTtl()

    row: Redirect | None = None
    for attempt in range(1, settings.id_max_attempts + 1):
        row = Redirect(
            id=generate_id(settings.id_length),
            target_url=target_url,
            created_at=created_at,
            ttl_seconds=ttl_seconds,
        )
        if _insert_if_absent(db, row):
            db.commit()
            break
        logger.debug("id collision on attempt %d: %s", attempt, row.id)
    else:
        logger.warning(
            "no free id after %d attempts, inserting %s anyway",
            settings.id_max_attempts,
            row.id,
        )
        db.execute(insert(Redirect.__table__).values(_row_values(row)))
        db.commit()

    logger.info("created %s -> %s (ttl %ss)", row.id, target_url, ttl_seconds)
    put_cached(row, created_at)
    return row


def resolve_mapping(db: Session, redirect_id: str | None) -> Redirect:
    """
    Lookup used by both /get and the redirect path:
      1) Redis cache lookup
      2) store fallback + cache warm-up
      3) expiry check against created_at + ttl; expired rows are deleted here
    """
    if not redirect_id:
        raise MissingId()

    now = now_ms()
    row = get_cached(redirect_id)
    if row is None:
        row = db.get(Redirect, redirect_id)
        if row is None:
            logger.debug("not found: %s", redirect_id)
            raise NotFound()
        put_cached(row, now)

    if is_expired(row, now):
        db.execute(delete(Redirect).where(Redirect.id == redirect_id))
        db.commit()
        evict(redirect_id)
        logger.info("expired, deleted: %s", redirect_id)
        raise Expired()

    return row
