import logging
import sys

AUDIT_LOGGER_NAME = "contractgen.audit"
# fpdf2 pulls in fontTools, which logs every glyph subset at DEBUG
QUIET_LOGGERS = ("fontTools", "fpdf")


def configure_logging(level: int | str = "INFO") -> None:
    """Idempotent logging configuration for the service.

    Third-party PDF loggers never go below WARNING, and the audit logger
    always records INFO events whatever the service level.
    """
    if isinstance(level, str):
        level = level.upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    numeric = logging.getLevelName(level) if isinstance(level, str) else level
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric, logging.WARNING))
    logging.getLogger(AUDIT_LOGGER_NAME).setLevel(logging.INFO)
