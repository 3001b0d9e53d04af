import sqlite3
import threading
from typing import List, Tuple

class StorageDB:
    """Append-only sqlite mirror of the event log for external indexers."""

    def __init__(self, db_path: str):
        self.conn = sqlite3.connect(db_path, check_same_thread=False)
        self.cursor = self.conn.cursor()
        self._lock = threading.Lock()
        self._init_db()

    def _init_db(self):
        with self._lock:
            # Events table: log_index is the global position in the log
            self.cursor.execute('''
                CREATE TABLE IF NOT EXISTS events (
                    log_index INTEGER PRIMARY KEY,
                    block INTEGER,
                    address TEXT,
                    event TEXT,
                    data TEXT
                )
            ''')
            # Range queries by block
            self.cursor.execute('''
                CREATE INDEX IF NOT EXISTS events_block ON events (block)
            ''')
            self.conn.commit()

    def append_events(self, rows: List[Tuple[int, int, str, str, str]]):
        """Rows are (log_index, block, address, event, json). Existing positions are never rewritten."""
        with self._lock:
            self.cursor.executemany(
                'INSERT INTO events (log_index, block, address, event, data) VALUES (?, ?, ?, ?, ?)',
                rows,
            )
            self.conn.commit()

    def get_events(self, from_block: int = 0, to_block: int = None) -> List[str]:
        with self._lock:
            if to_block is None:
                self.cursor.execute(
                    'SELECT data FROM events WHERE block >= ? ORDER BY log_index', (from_block,))
            else:
                self.cursor.execute(
                    'SELECT data FROM events WHERE block >= ? AND block <= ? ORDER BY log_index',
                    (from_block, to_block))
            return [row[0] for row in self.cursor.fetchall()]

    def count_events(self) -> int:
        with self._lock:
            self.cursor.execute('SELECT COUNT(*) FROM events')
            return self.cursor.fetchone()[0]

    def close(self):
        with self._lock:
            self.conn.close()
