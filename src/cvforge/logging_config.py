from __future__ import annotations

import logging

from cvforge.config import get_settings

# Client libraries that log every request at INFO; request URLs can carry API keys.
_CHATTY_LOGGERS = ("httpx", "httpcore", "openai", "anthropic", "readability.readability", "urllib3")

_LOG_CONFIGURED = False


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once per process.

    ``level`` overrides ``Settings.log_level``.
    """
    global _LOG_CONFIGURED
    if _LOG_CONFIGURED:
        return

    name = (level or get_settings().log_level).upper()
    logging.basicConfig(
        level=getattr(logging, name, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    for logger_name in _CHATTY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)
    _LOG_CONFIGURED = True
