"""Thin SQLite wrapper shared by the DL*Manager classes."""

import os
import sqlite3
import threading

from crowdfund.core.logging import log


class DatabaseManager:
    def __init__(self, db_path: str):
        self.db_path = str(db_path)
        self.conn = None
        self.lock = threading.RLock()

    def connect(self):
        if self.conn is None:
            folder = os.path.dirname(self.db_path)
            if folder:
                os.makedirs(folder, exist_ok=True)
            # FastAPI runs sync routes on a thread pool
            self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self.conn.row_factory = sqlite3.Row
            log.debug(f"Connected to {self.db_path}", source="DatabaseManager")
        return self.conn

    def get_cursor(self):
        try:
            return self.connect().cursor()
        except sqlite3.Error as exc:
            log.error(f"DB connect failed: {exc}", source="DatabaseManager")
            return None

    def commit(self):
        if self.conn is not None:
            self.conn.commit()

    def close(self):
        if self.conn is not None:
            self.conn.close()
            self.conn = None
            log.debug("Connection closed", source="DatabaseManager")
