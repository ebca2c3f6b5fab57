from __future__ import annotations

import logging

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        resolved = logging.INFO

    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=resolved, format=_LOG_FORMAT)
    root.setLevel(resolved)
    # The Gemini HTTP stack is noisy at INFO.
    logging.getLogger("httpx").setLevel(max(resolved, logging.WARNING))
    logging.getLogger("google_genai").setLevel(max(resolved, logging.WARNING))
