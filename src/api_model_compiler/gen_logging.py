"""
Logging for the model compilation pipeline.

Compiler modules log through a child of the "modelc" logger:

    from api_model_compiler.gen_logging import get_logger
    logger = get_logger(__name__)    # -> "modelc.<module>"

The CLI picks the level once per invocation.
"""

import logging
import sys

ROOT = "modelc"


def get_logger(name: str | None = None) -> logging.Logger:
    """Map a module ``__name__`` onto the modelc hierarchy.

    "api_model_compiler.compiler.resolver" becomes "modelc.resolver".
    """
    if not name or name == ROOT:
        return logging.getLogger(ROOT)
    return logging.getLogger(f"{ROOT}.{name.rpartition('.')[2]}")


def configure_gen_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Set the modelc level and install one stderr handler.

    -v gives DEBUG (each rename, dropped variant and fallback), -q gives
    WARNING, otherwise INFO (one summary line per stage).
    """
    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO
    logger = logging.getLogger(ROOT)
    logger.setLevel(level)
    logger.propagate = False

    if not logger.handlers:
        logger.addHandler(logging.StreamHandler(sys.stderr))
    for handler in logger.handlers:
        handler.setLevel(level)
        handler.setFormatter(_StageFormatter())
        # CliRunner swaps sys.stderr between invocations
        if isinstance(handler, logging.StreamHandler):
            handler.setStream(sys.stderr)


class _StageFormatter(logging.Formatter):
    """Prefix records with the stage that emitted them: "[registry] ..."."""

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        if record.name == ROOT:
            return message
        return f"[{record.name.rpartition('.')[2]}] {message}"
