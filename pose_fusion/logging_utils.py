"""
Loggers for the fusion process.

Every line carries a ``[source]`` tag. Component loggers (``engine``,
``replay``) tag with their own name; records about a particular vision
family are emitted through :func:`source_logger` so the tag names that
family (``limelight:limelight-pose``, ``photon:photon-1``, ...) instead.
"""

import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s [%(source)s] %(message)s"


class SourceTagFilter(logging.Filter):
    """Fills in ``record.source`` for records that were not tagged by a family."""

    def __init__(self, default_source: str):
        super().__init__()
        self.default_source = default_source

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "source", None):
            record.source = self.default_source
        return True


def _attach(logger: logging.Logger, handler: logging.Handler, component: str) -> logging.Handler:
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(SourceTagFilter(component))
    logger.addHandler(handler)
    return handler


def setup_logger(component: str, level: int = logging.INFO) -> logging.Logger:
    logger = logging.getLogger(f"pose_fusion.{component}")
    logger.setLevel(level)

    if not logger.handlers:
        _attach(logger, logging.StreamHandler(), component)

    return logger


def add_file_handler(logger: logging.Logger, component: str, log_path: str) -> logging.Handler:
    """Mirror ``logger`` into ``log_path``; the caller removes and closes the handler."""
    return _attach(logger, logging.FileHandler(log_path), component)


def source_logger(parent: logging.Logger, source_id: Optional[str]) -> logging.LoggerAdapter:
    """Adapter over ``parent`` whose records are tagged with ``source_id``."""
    return logging.LoggerAdapter(parent, {"source": source_id or parent.name})
