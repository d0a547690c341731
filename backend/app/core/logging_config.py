"""Process-wide logging setup.

Modules log through ``logging.getLogger(__name__)``; this only decides where
records go and at what level. Called once when the app is created.
"""

from __future__ import annotations

import logging

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    root.setLevel(level.upper())
    if not any(getattr(h, "_ican_portal", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._ican_portal = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    # SQL echo is controlled by the engine, not the log level
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
