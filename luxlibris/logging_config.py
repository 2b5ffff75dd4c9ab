import os
from logging.config import dictConfig

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _flag(name: str) -> bool:
    return os.getenv(name, "0").lower() in {"1", "true", "yes"}


def configure_logging() -> None:
    """Set up console logging for the API process.

    ``LUX_LOG_LEVEL`` sets the root level. ``LUX_DEBUG_SQL`` echoes SQLAlchemy
    statements and ``LUX_DEBUG_SCORING`` logs every tally and tie-break.
    """
    root_level = os.getenv("LUX_LOG_LEVEL", "INFO").upper()
    loggers = {
        "luxlibris.telemetry": {"level": os.getenv("LUX_TELEMETRY_LOG_LEVEL", root_level).upper()},
        "sqlalchemy.engine": {"level": "INFO" if _flag("LUX_DEBUG_SQL") else "WARNING"},
        "luxlibris.assessment_scoring": {"level": "DEBUG" if _flag("LUX_DEBUG_SCORING") else root_level},
    }
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"console": {"format": LOG_FORMAT}},
            "handlers": {
                "console": {"class": "logging.StreamHandler", "formatter": "console"},
            },
            "loggers": loggers,
            "root": {"handlers": ["console"], "level": root_level},
        }
    )
