"""
SQLite repository store adapter.

Implements RepositoryStorePort. Blob bytes and asset rows live in the same
database so a single transaction covers both.

Invariants:
- Blobs are content-addressed by sha256; identical bytes share one row
- (repository, path) holds at most one asset; a later commit overwrites it
- Readers never observe a half-written asset (BEGIN IMMEDIATE ... COMMIT)
"""

from __future__ import annotations

import hashlib
import json
import logging
import sqlite3
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any, TypeVar

from helm_upload.core.errors import CommitError, IOFailure
from helm_upload.core.ports.storage import StoredAsset, TempBlob

from .migrator import SQLiteMigrator

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_BUSY_TIMEOUT_SECONDS = 30.0


def dict_factory(cursor: sqlite3.Cursor, row: tuple[Any, ...]) -> dict[str, Any]:
    """Convert SQLite row to dictionary."""
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


def parse_dt(s: str) -> datetime:
    return datetime.fromisoformat(s)


def _map_asset(row: dict[str, Any]) -> StoredAsset:
    digests = {"sha256": row["blob_sha256"]}
    if row.get("sha1"):
        digests["sha1"] = row["sha1"]
    return StoredAsset(
        repository=row["repository"],
        path=row["path"],
        kind=row["kind"],
        blob_sha256=row["blob_sha256"],
        size_bytes=row["size_bytes"],
        content_type=row["content_type"],
        attributes=json.loads(row["attributes_json"]),
        created_at=parse_dt(row["created_at"]),
        updated_at=parse_dt(row["updated_at"]),
        digests=digests,
    )


_SELECT_ASSET = """
    SELECT a.*, b.sha1, b.size_bytes
    FROM assets a JOIN blobs b ON b.sha256 = a.blob_sha256
"""


class SQLiteUnitOfWork:
    """Writes bound to one open transaction."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def put_blob(self, blob: TempBlob) -> str:
        sha256 = blob.digests["sha256"]
        with blob.get() as f:
            data = f.read()

        # Bytes must still match what was hashed at intake
        actual = hashlib.sha256(data).hexdigest()
        if actual != sha256:
            raise IOFailure(f"Integrity check failed: expected {sha256}, got {actual}")

        self._conn.execute(
            """
            INSERT INTO blobs (sha256, sha1, size_bytes, content, created_at)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(sha256) DO NOTHING
            """,
            (
                sha256,
                blob.digests.get("sha1") or hashlib.sha1(data).hexdigest(),
                len(data),
                sqlite3.Binary(data),
                datetime.now(UTC).isoformat(),
            ),
        )
        return sha256

    def save_asset(
        self,
        *,
        repository: str,
        path: str,
        kind: str,
        blob_sha256: str,
        content_type: str,
        attributes: Mapping[str, Any],
    ) -> tuple[StoredAsset, bool]:
        existing = self._conn.execute(
            "SELECT created_at FROM assets WHERE repository = ? AND path = ?",
            (repository, path),
        ).fetchone()
        now = datetime.now(UTC).isoformat()
        created_at = existing["created_at"] if existing else now

        self._conn.execute(
            """
            INSERT INTO assets (
                repository, path, kind, blob_sha256, content_type,
                attributes_json, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(repository, path) DO UPDATE SET
                kind=excluded.kind,
                blob_sha256=excluded.blob_sha256,
                content_type=excluded.content_type,
                attributes_json=excluded.attributes_json,
                updated_at=excluded.updated_at
            """,
            (
                repository,
                path,
                kind,
                blob_sha256,
                content_type,
                json.dumps(dict(attributes), sort_keys=True, default=str),
                created_at,
                now,
            ),
        )

        row = self._conn.execute(
            _SELECT_ASSET + " WHERE a.repository = ? AND a.path = ?",
            (repository, path),
        ).fetchone()
        return _map_asset(row), existing is None


class SQLiteRepositoryStore:
    """SQLite implementation of RepositoryStorePort."""

    def __init__(
        self,
        db_path: str,
        *,
        busy_timeout: float = DEFAULT_BUSY_TIMEOUT_SECONDS,
        migrate: bool = True,
    ) -> None:
        self.db_path = db_path
        self.busy_timeout = busy_timeout
        if migrate:
            applied = SQLiteMigrator(db_path).run_migrations()
            if applied:
                logger.info(
                    "Initialized repository store %s with %s", db_path, ", ".join(applied)
                )

    def _get_conn(self) -> sqlite3.Connection:
        # Autocommit mode; transactions are opened explicitly
        conn = sqlite3.connect(self.db_path, timeout=self.busy_timeout, isolation_level=None)
        conn.row_factory = dict_factory
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    def transaction(self, work: Callable[[SQLiteUnitOfWork], T]) -> T:
        try:
            conn = self._get_conn()
        except sqlite3.Error as e:
            raise IOFailure(f"Could not open repository store: {e}") from e

        try:
            try:
                conn.execute("BEGIN IMMEDIATE")
            except sqlite3.Error as e:
                raise CommitError(f"Could not begin transaction: {e}") from e

            try:
                result = work(SQLiteUnitOfWork(conn))
            except sqlite3.Error as e:
                self._rollback(conn)
                raise IOFailure(f"Repository store write failed: {e}") from e
            except BaseException:
                self._rollback(conn)
                raise

            try:
                conn.execute("COMMIT")
            except sqlite3.Error as e:
                self._rollback(conn)
                raise CommitError(f"Transaction failed to commit: {e}") from e

            return result
        finally:
            conn.close()

    def _rollback(self, conn: sqlite3.Connection) -> None:
        if conn.in_transaction:
            conn.execute("ROLLBACK")
            logger.debug("Rolled back repository store transaction")

    def get_asset(self, repository: str, path: str) -> StoredAsset | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                _SELECT_ASSET + " WHERE a.repository = ? AND a.path = ?",
                (repository, path),
            ).fetchone()
            return _map_asset(row) if row else None
        finally:
            conn.close()

    def list_assets(self, repository: str) -> list[StoredAsset]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                _SELECT_ASSET + " WHERE a.repository = ? ORDER BY a.path ASC",
                (repository,),
            ).fetchall()
            return [_map_asset(r) for r in rows]
        finally:
            conn.close()

    def read_blob(self, sha256: str) -> bytes | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT content FROM blobs WHERE sha256 = ?", (sha256,)).fetchone()
            return bytes(row["content"]) if row else None
        finally:
            conn.close()

    def count_blobs(self) -> int:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT COUNT(*) AS n FROM blobs").fetchone()
            return int(row["n"])
        finally:
            conn.close()
