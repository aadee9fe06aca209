from .constants import (
    BASE_DIR,
    CROWDFUND_DB_PATH,
    CONFIG_DIR,
    LOG_DATE_FORMAT,
)
from .logging import log, configure_console_log

__all__ = [
    "BASE_DIR",
    "CROWDFUND_DB_PATH",
    "CONFIG_DIR",
    "LOG_DATE_FORMAT",
    "log",
    "configure_console_log",
]
