"""Entrypoint: python -m chat_hub"""
from __future__ import annotations

import logging

import uvicorn

from chat_hub.api.middleware.correlation_id import CorrelationIdFilter
from chat_hub.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(correlation_id)s]: %(message)s"


def configure_logging() -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(CorrelationIdFilter())
    logging.basicConfig(level=settings.LOG_LEVEL.upper(), handlers=[handler], force=True)


def main() -> None:
    configure_logging()
    uvicorn.run(
        "chat_hub.app:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
