# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Logging setup for the ``lunchdesk`` logger.

Handlers and formats come from etc/logging.conf.  Two things are decided
at runtime from settings: where the rotating log file goes (``LOG_DIR``,
default <project>/log) and the level of the application logger
(``LOG_LEVEL``).

    from core.logger import logger
"""

import configparser
import logging
import logging.config
from pathlib import Path

from core.config import settings

APP_LOGGER = "lunchdesk"

_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_LOGGING_CONF = _PROJECT_ROOT / "etc" / "logging.conf"


def configure_logging(log_dir: Path, level: str = "INFO", conf_path: Path = _LOGGING_CONF) -> logging.Logger:
    """
    Apply *conf_path* with its ``%(log_file)s`` placeholder pointing at
    ``<log_dir>/app.log`` and the application logger set to *level*.
    Returns the application logger.
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    text = conf_path.read_text(encoding="utf-8").replace("%(log_file)s", str(log_dir / "app.log"))

    # Raw parser: the format strings hold %(asctime)s and friends
    parser = configparser.RawConfigParser()
    parser.read_string(text)
    parser.set(f"logger_{APP_LOGGER}", "level", level.upper())

    logging.config.fileConfig(parser, disable_existing_loggers=False)
    return logging.getLogger(APP_LOGGER)


logger = configure_logging(
    Path(settings.log_dir) if settings.log_dir else _PROJECT_ROOT / "log",
    settings.log_level,
)
