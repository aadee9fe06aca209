from pathlib import Path
import os

BASE_DIR = Path(__file__).resolve().parent.parent
CROWDFUND_DB_PATH = Path(os.environ.get("CROWDFUND_DB_PATH", BASE_DIR / "crowdfund.db"))
CONFIG_DIR = BASE_DIR / "config"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# 1 AVAX = 10**18 wei
WEI_PER_ETHER = 10**18

__all__ = [
    "BASE_DIR",
    "CROWDFUND_DB_PATH",
    "CONFIG_DIR",
    "LOG_DATE_FORMAT",
    "WEI_PER_ETHER",
]
