# data_locker.py
"""
Module: DataLocker
Description:
    Single access point for the crowdfund relay's local SQLite data. Contract
    state is always read from the chain; only client-reported transaction
    receipts live here.
"""

from crowdfund.core.constants import CROWDFUND_DB_PATH
from crowdfund.core.logging import log
from crowdfund.data.database import DatabaseManager
from crowdfund.data.dl_transactions import DLTransactionManager


class DataLocker:
    """Singleton-style access point for all data managers."""

    _instance = None

    def __init__(self, db_path: str):
        self.db = DatabaseManager(db_path)
        self.transactions = DLTransactionManager(self.db)
        log.debug(f"DataLocker ready at {db_path}", source="DataLocker")

    @classmethod
    def get_instance(cls, db_path: str = str(CROWDFUND_DB_PATH)):
        """Return a singleton instance of DataLocker."""
        if cls._instance is None or str(cls._instance.db.db_path) != str(db_path):
            cls._instance = cls(db_path)
        return cls._instance

    def close(self):
        self.db.close()
        if DataLocker._instance is self:
            DataLocker._instance = None
        log.debug("DataLocker shutdown complete.", source="DataLocker")
