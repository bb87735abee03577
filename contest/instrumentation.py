"""Stage boundary instrumentation for the admission pipeline."""

import logging
import time
from contextlib import contextmanager
from typing import Iterator

import sentry_sdk

logger = logging.getLogger("contest.pipeline")


@contextmanager
def stage(name: str, **fields) -> Iterator[None]:
    """
    Log the start, outcome and duration of one pipeline stage.

    Also leaves a Sentry breadcrumb so an error reported later in the request
    shows which stages ran before it. Exceptions are re-raised untouched.
    """
    detail = " ".join(f"{key}={value}" for key, value in fields.items())
    started = time.monotonic()
    logger.debug(f"[{name}] start {detail}".rstrip())
    try:
        yield
    except Exception as e:
        elapsed_ms = (time.monotonic() - started) * 1000
        logger.info(
            f"[{name}] failed after {elapsed_ms:.0f}ms: {type(e).__name__} {detail}".rstrip()
        )
        sentry_sdk.add_breadcrumb(
            category="pipeline",
            message=f"{name} failed: {type(e).__name__}",
            level="warning",
            data=fields,
        )
        raise
    elapsed_ms = (time.monotonic() - started) * 1000
    logger.info(f"[{name}] ok in {elapsed_ms:.0f}ms {detail}".rstrip())
    sentry_sdk.add_breadcrumb(
        category="pipeline", message=f"{name} ok", level="info", data=fields
    )
