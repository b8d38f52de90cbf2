"""SQLite database for transaction storage with optimistic concurrency."""

import json
import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import replace
from pathlib import Path
from typing import Optional, List, Generator, Union

from ..transactions.commission import format_amount
from ..transactions.errors import ConflictError, NotFoundError, PersistenceError
from ..transactions.models import Transaction, utcnow

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path.home() / ".td-commission-engine" / "transactions.db"


class TransactionDatabase:
    """SQLite database for storing transactions.

    Every save is a compare-and-swap on the ``version`` column: a record
    loaded before someone else saved it can no longer be written back.
    """

    def __init__(self, db_path: Optional[Union[Path, str]] = None):
        """Initialize database connection."""
        self.db_path = Path(db_path) if db_path else DEFAULT_DB_PATH
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._init_db()

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Get a database connection with row factory."""
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise PersistenceError(f"Could not open database {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise PersistenceError(f"Database error: {e}") from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_db(self):
        """Initialize database schema."""
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS transactions (
                    id TEXT PRIMARY KEY,
                    total_service_fee TEXT NOT NULL,
                    listing_agent TEXT,
                    selling_agent TEXT,

                    stage TEXT NOT NULL DEFAULT 'agreement',
                    earnest_money TEXT,

                    financial_breakdown_json TEXT,
                    commission_detail TEXT,
                    stage_history_json TEXT NOT NULL DEFAULT '[]',

                    version INTEGER NOT NULL DEFAULT 0,
                    created_at TIMESTAMP NOT NULL,
                    updated_at TIMESTAMP NOT NULL
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_transactions_stage ON transactions(stage)
            """)

    def _row_to_transaction(self, row: sqlite3.Row) -> Transaction:
        """Convert a database row to a Transaction object."""
        data = dict(row)
        data["financial_breakdown"] = json.loads(data.pop("financial_breakdown_json") or "{}")
        data["stage_history"] = json.loads(data.pop("stage_history_json") or "[]")
        return Transaction.from_dict(data)

    @staticmethod
    def _columns(txn: Transaction) -> dict:
        return {
            "total_service_fee": format_amount(txn.total_service_fee),
            "listing_agent": txn.listing_agent,
            "selling_agent": txn.selling_agent,
            "stage": txn.stage.value,
            "earnest_money": format_amount(txn.earnest_money) if txn.earnest_money is not None else None,
            "financial_breakdown_json": json.dumps(txn.financial_breakdown.to_dict()),
            "commission_detail": txn.commission_detail,
            "stage_history_json": json.dumps([e.to_dict() for e in txn.stage_history]),
        }

    def insert(self, txn: Transaction) -> Transaction:
        """Store a new transaction and return the stored representation."""
        now = utcnow()
        stored = replace(txn, version=1, created_at=now, updated_at=now)
        columns = self._columns(stored)
        columns.update({
            "id": stored.id,
            "version": stored.version,
            "created_at": stored.created_at.isoformat(),
            "updated_at": stored.updated_at.isoformat(),
        })

        names = ", ".join(columns)
        placeholders = ", ".join(f":{name}" for name in columns)
        with self._get_connection() as conn:
            conn.execute(f"INSERT INTO transactions ({names}) VALUES ({placeholders})", columns)

        return stored

    def load(self, txn_id: str) -> Transaction:
        """Fetch a transaction by id."""
        with self._get_connection() as conn:
            row = conn.execute("SELECT * FROM transactions WHERE id = ?", (txn_id,)).fetchone()
        if row is None:
            raise NotFoundError(txn_id)
        return self._row_to_transaction(row)

    def save(self, txn: Transaction) -> Transaction:
        """Write back a loaded transaction.

        Raises:
            ConflictError: the stored version no longer matches ``txn.version``
            NotFoundError: the transaction was removed in the meantime
        """
        now = utcnow()
        columns = self._columns(txn)
        assignments = ", ".join(f"{name} = :{name}" for name in columns)
        columns.update({
            "id": txn.id,
            "expected_version": txn.version,
            "updated_at": now.isoformat(),
        })

        with self._get_connection() as conn:
            cursor = conn.execute(
                f"UPDATE transactions SET {assignments}, version = version + 1, updated_at = :updated_at "
                "WHERE id = :id AND version = :expected_version",
                columns,
            )
            if cursor.rowcount == 0:
                exists = conn.execute("SELECT 1 FROM transactions WHERE id = ?", (txn.id,)).fetchone()
                if exists is None:
                    raise NotFoundError(txn.id)
                raise ConflictError(txn.id, txn.version)

        return replace(txn, version=txn.version + 1, updated_at=now)

    def list_all(self) -> List[Transaction]:
        """Get all transactions in creation order."""
        with self._get_connection() as conn:
            rows = conn.execute("SELECT * FROM transactions ORDER BY created_at, rowid").fetchall()
        return [self._row_to_transaction(row) for row in rows]

    def ping(self) -> bool:
        """Check the database is reachable."""
        with self._get_connection() as conn:
            conn.execute("SELECT 1")
        return True
