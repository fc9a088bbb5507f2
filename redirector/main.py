from __future__ import annotations

import logging
import time
from fastapi import FastAPI, Depends, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.orm import Session
from sqlalchemy import text

from redirector.db import Base, engine, get_db
from redirector.config import settings
from redirector.errors import InvalidPath, RedirectorError
from redirector.logging_config import log_duration, setup_logging
from redirector.schemas import AddResponse, ErrorResponse, GetResponse
from redirector.service import (
    create_mapping,
    resolve_mapping,
    expires_at,
    expires_http_date,
)

logger = logging.getLogger(__name__)

app = FastAPI(title="Redirector")

ERROR_RESPONSES = {400: {"model": ErrorResponse}}


@app.on_event("startup")
def on_startup() -> None:
    """
    Configure logging, then poll the store with SELECT 1 (settings.db_connect_attempts
    tries, one second apart) and create the redirector table if it is missing.
    """
    setup_logging(settings.log_level)

    sleep_seconds = 1

    last_err: Exception | None = None
    for _ in range(settings.db_connect_attempts):
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            last_err = None
            break
        except Exception as e:
            last_err = e
            logger.warning("database not reachable yet: %s", e)
            time.sleep(sleep_seconds)

    if last_err is not None:
        raise RuntimeError(
            f"Database not reachable after {settings.db_connect_attempts} attempts"
        ) from last_err

    Base.metadata.create_all(bind=engine)


@app.exception_handler(RedirectorError)
async def redirector_error_handler(request: Request, exc: RedirectorError) -> JSONResponse:
    logger.debug("%s rejected: %s", request.url.path, exc.message)
    return JSONResponse(status_code=400, content={"error": exc.message})


@app.get("/add{suffix:path}", response_model=AddResponse, responses=ERROR_RESPONSES)
def add_mapping(
    url: str | None = None,
    expires: str | None = None,
    db: Session = Depends(get_db),
) -> AddResponse:
    # any path starting with /add lands here (/add, /add/, /addlink)
    # expires is kept as a raw string so a bad value is a 400 {error}, not a 422
    with log_duration(logger, "add"):
        row = create_mapping(db, url, expires)

    return AddResponse(id=row.id, url=row.target_url, expires=row.ttl_seconds)


@app.get("/get{suffix:path}", response_model=GetResponse, responses=ERROR_RESPONSES)
def get_mapping(
    redirect_id: str | None = Query(default=None, alias="id"),
    db: Session = Depends(get_db),
) -> GetResponse:
    # same prefix match as /add
    with log_duration(logger, "get"):
        row = resolve_mapping(db, redirect_id)

    return GetResponse(url=row.target_url, expires=expires_at(row))


@app.get("/{redirect_id}", status_code=302, responses=ERROR_RESPONSES)
def redirect(redirect_id: str, db: Session = Depends(get_db)) -> RedirectResponse:
    with log_duration(logger, "redirect"):
        row = resolve_mapping(db, redirect_id)

    return RedirectResponse(
        url=row.target_url,
        status_code=302,
        headers={"Expires": expires_http_date(row)},
    )


@app.api_route(
    "/{path:path}",
    methods=["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE"],
    include_in_schema=False,
)
def invalid_path(path: str) -> None:
    raise InvalidPath()
