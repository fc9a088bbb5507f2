from __future__ import annotations

import argparse
import logging
import time

from sqlalchemy import text
from sqlalchemy.engine import Engine

from redirector.config import settings
from redirector.db import engine
from redirector.logging_config import log_duration, setup_logging
from redirector.service import now_ms

logger = logging.getLogger(__name__)

SWEEP_STMT = text("""
    DELETE FROM redirector
    WHERE created_at + (expires * 1000) <= :now
""")


def sweep_once(bind: Engine | None = None, now: int | None = None) -> int:
    """
    Delete every mapping whose derived expiry (created_at + expires seconds)
    is at or before now. Returns the number of rows removed.
    """
    now = now if now is not None else now_ms()
    with log_duration(logger, "sweep"):
        with (bind or engine).begin() as conn:
            result = conn.execute(SWEEP_STMT, {"now": now})
    return result.rowcount


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Purge expired redirects.")
    parser.add_argument("--once", action="store_true", help="run a single sweep and exit")
    args = parser.parse_args(argv)

    setup_logging(settings.log_level)

    if args.once:
        logger.info("swept %d expired redirects", sweep_once())
        return

    logger.info("starting sweep loop every %ss", settings.sweep_interval_seconds)
    while True:
        try:
            n = sweep_once()
            if n:
                logger.info("swept %d expired redirects", n)
        except Exception:
            logger.exception("error during sweep")
        time.sleep(settings.sweep_interval_seconds)


if __name__ == "__main__":
    main()
