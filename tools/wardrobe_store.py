"""Wardrobe storage abstractions and SQLite implementation."""
from __future__ import annotations

import contextlib
import json
import math
import sqlite3
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Tuple

from curator_app.errors import ConstraintViolation, NotFound, StorageFault
from models.taxonomy import ItemStatus
from models.wardrobe_item import EMBEDDING_DIMENSION, WardrobeItem
from tools.observability import instrument_call

MAX_LIST_LIMIT = 1000
DEFAULT_LIST_LIMIT = 100
SORT_COLUMNS = ("created_at", "updated_at")


@dataclass
class ItemFilters:
    """Exact-match and any-of filters for listing wardrobe items."""

    user_id: Optional[str] = None
    category: Optional[str] = None
    style: Optional[str] = None
    season: Optional[str] = None
    status: Optional[str] = None
    colors: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    q: Optional[str] = None


class WardrobeStore:
    """Persistence interface for wardrobe items."""

    def insert(self, item: WardrobeItem) -> WardrobeItem:
        raise NotImplementedError

    def get_item(self, item_id: str) -> WardrobeItem:
        raise NotImplementedError

    def update_embedding(
        self, item_id: str, vector: Sequence[float], description: Optional[str] = None
    ) -> WardrobeItem:
        raise NotImplementedError

    def mark_failed(self, item_id: str) -> bool:
        raise NotImplementedError

    def query_by_similarity(
        self, query_vector: Sequence[float], owner_id: Optional[str] = None, limit: int = 10
    ) -> List[Tuple[WardrobeItem, float]]:
        raise NotImplementedError

    def query_by_keyword(
        self, pattern: str, owner_id: Optional[str] = None, limit: int = 10
    ) -> List[WardrobeItem]:
        raise NotImplementedError

    def list_by_filters(
        self,
        filters: ItemFilters,
        limit: int = DEFAULT_LIST_LIMIT,
        offset: int = 0,
        sort: str = "created_at",
        direction: str = "desc",
    ) -> List[WardrobeItem]:
        raise NotImplementedError


def _l2_distance(raw_a: Optional[str], raw_b: Optional[str]) -> Optional[float]:
    """Euclidean distance between two JSON-encoded vectors of equal length."""

    if not raw_a or not raw_b:
        return None
    a = json.loads(raw_a)
    b = json.loads(raw_b)
    if not a or len(a) != len(b):
        return None
    return math.sqrt(sum((x - y) * (x - y) for x, y in zip(a, b)))


def _like_pattern(text: str) -> str:
    escaped = text.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SQLiteWardrobeStore(WardrobeStore):
    """Local SQLite-backed store for wardrobe items.

    Every operation is a single-row write or a read on its own connection, so
    concurrent requests rely on SQLite's row and transaction semantics only.
    Ties in every ordering fall back to ``rowid``, i.e. insertion order.
    """

    def __init__(self, database_path: str | Path = "data/wardrobe.db", timeout_seconds: float = 10.0) -> None:
        self.database_path = Path(database_path)
        self.timeout_seconds = timeout_seconds
        if self.database_path.parent and not self.database_path.parent.exists():
            self.database_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_tables()

    @contextlib.contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(self.database_path, timeout=self.timeout_seconds)
        except sqlite3.Error as exc:
            raise StorageFault("Unable to open wardrobe database") from exc
        conn.row_factory = sqlite3.Row
        conn.create_function("l2_distance", 2, _l2_distance, deterministic=True)
        try:
            with conn:
                yield conn
        except sqlite3.IntegrityError as exc:
            raise ConstraintViolation(str(exc)) from exc
        except sqlite3.Error as exc:
            raise StorageFault(str(exc)) from exc
        finally:
            conn.close()

    def _ensure_tables(self) -> None:
        with self._connect() as conn:
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS wardrobe_items (
                    id TEXT PRIMARY KEY,
                    user_id TEXT,
                    image_url TEXT NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    embedding TEXT,
                    category TEXT NOT NULL,
                    style TEXT NOT NULL,
                    season TEXT NOT NULL,
                    colors TEXT NOT NULL DEFAULT '[]',
                    tags TEXT NOT NULL DEFAULT '[]',
                    status TEXT NOT NULL DEFAULT 'processing',
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_wardrobe_items_owner_status "
                "ON wardrobe_items (user_id, status);"
            )

    @staticmethod
    def _serialise_list(values: Optional[Sequence[object]]) -> str:
        return json.dumps(list(values or []), ensure_ascii=False)

    @staticmethod
    def _deserialise_list(raw: Optional[str]) -> List[object]:
        if not raw:
            return []
        decoded = json.loads(raw)
        return decoded if isinstance(decoded, list) else [decoded]

    def _row_to_item(self, row: sqlite3.Row) -> WardrobeItem:
        try:
            embedding = [float(x) for x in self._deserialise_list(row["embedding"])]
            return WardrobeItem(
                item_id=row["id"],
                owner_id=row["user_id"],
                image_url=row["image_url"],
                description=row["description"] or "",
                embedding=embedding or None,
                category=row["category"],
                style=row["style"],
                season=row["season"],
                colors=[str(c) for c in self._deserialise_list(row["colors"])],
                tags=[str(t) for t in self._deserialise_list(row["tags"])],
                status=row["status"],
                created_at=datetime.fromisoformat(row["created_at"]),
                updated_at=datetime.fromisoformat(row["updated_at"]),
            )
        except (TypeError, ValueError) as exc:
            raise StorageFault(f"Stored wardrobe item {row['id']} could not be decoded") from exc

    @staticmethod
    def _check_vector(vector: Optional[Sequence[float]]) -> List[float]:
        values = [float(x) for x in (vector or [])]
        if len(values) != EMBEDDING_DIMENSION:
            raise ConstraintViolation(
                f"Embedding must have {EMBEDDING_DIMENSION} components, got {len(values)}"
            )
        return values

    @instrument_call("wardrobe_store.insert")
    def insert(self, item: WardrobeItem) -> WardrobeItem:
        if not item.image_url:
            raise ConstraintViolation("image_url is required")
        if item.status == ItemStatus.READY:
            self._check_vector(item.embedding)
        embedding = self._serialise_list(item.embedding) if item.embedding else None
        item_id = item.item_id or str(uuid.uuid4())
        timestamp = _now()
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO wardrobe_items (
                    id, user_id, image_url, description, embedding, category, style, season,
                    colors, tags, status, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    item_id,
                    item.owner_id,
                    item.image_url,
                    item.description,
                    embedding,
                    item.category.value,
                    item.style.value,
                    item.season.value,
                    self._serialise_list(item.colors),
                    self._serialise_list(item.tags),
                    item.status.value,
                    timestamp,
                    timestamp,
                ),
            )
        created = datetime.fromisoformat(timestamp)
        return replace(item, item_id=item_id, created_at=created, updated_at=created)

    def get_item(self, item_id: str) -> WardrobeItem:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM wardrobe_items WHERE id = ?", (item_id,)).fetchone()
        if row is None:
            raise NotFound(f"Wardrobe item {item_id} not found")
        return self._row_to_item(row)

    @instrument_call("wardrobe_store.update_embedding")
    def update_embedding(
        self, item_id: str, vector: Sequence[float], description: Optional[str] = None
    ) -> WardrobeItem:
        """Store the embedding and flip the item to ``ready`` in one row update."""

        values = self._check_vector(vector)
        with self._connect() as conn:
            cursor = conn.execute(
                """
                UPDATE wardrobe_items
                SET embedding = ?, description = COALESCE(?, description), status = ?, updated_at = ?
                WHERE id = ?
                """,
                (self._serialise_list(values), description, ItemStatus.READY.value, _now(), item_id),
            )
            if cursor.rowcount == 0:
                raise NotFound(f"Wardrobe item {item_id} not found")
        return self.get_item(item_id)

    @instrument_call("wardrobe_store.mark_failed")
    def mark_failed(self, item_id: str) -> bool:
        """Move an item to ``failed``; unknown or already failed ids are a no-op."""

        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE wardrobe_items SET status = ?, updated_at = ? WHERE id = ? AND status != ?",
                (ItemStatus.FAILED.value, _now(), item_id, ItemStatus.FAILED.value),
            )
            return cursor.rowcount > 0

    @instrument_call("wardrobe_store.query_by_similarity")
    def query_by_similarity(
        self, query_vector: Sequence[float], owner_id: Optional[str] = None, limit: int = 10
    ) -> List[Tuple[WardrobeItem, float]]:
        """Return ready items by ascending L2 distance to ``query_vector``."""

        vector = self._check_vector(query_vector)
        where = ["status = ?", "embedding IS NOT NULL", "embedding != '[]'"]
        params: List[object] = [self._serialise_list(vector), ItemStatus.READY.value]
        if owner_id is not None:
            where.append("(user_id = ? OR user_id IS NULL)")
            params.append(owner_id)
        params.append(int(limit))
        sql = f"""
            SELECT * FROM (
                SELECT *, rowid AS seq, l2_distance(embedding, ?) AS distance
                FROM wardrobe_items
                WHERE {" AND ".join(where)}
            )
            WHERE distance IS NOT NULL
            ORDER BY distance ASC, seq ASC
            LIMIT ?
        """
        with self._connect() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [(self._row_to_item(row), float(row["distance"])) for row in rows]

    @instrument_call("wardrobe_store.query_by_keyword")
    def query_by_keyword(
        self, pattern: str, owner_id: Optional[str] = None, limit: int = 10
    ) -> List[WardrobeItem]:
        """Case-insensitive substring match over description and metadata, newest first."""

        like = _like_pattern(pattern)
        fields = ("description", "category", "style", "tags", "colors")
        match_sql = " OR ".join(f"LOWER({name}) LIKE ? ESCAPE '\\'" for name in fields)
        where = ["status = ?", f"({match_sql})"]
        params: List[object] = [ItemStatus.READY.value, *([like] * len(fields))]
        if owner_id is not None:
            where.append("(user_id = ? OR user_id IS NULL)")
            params.append(owner_id)
        params.append(int(limit))
        sql = f"""
            SELECT * FROM wardrobe_items
            WHERE {" AND ".join(where)}
            ORDER BY created_at DESC, rowid DESC
            LIMIT ?
        """
        with self._connect() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [self._row_to_item(row) for row in rows]

    @instrument_call("wardrobe_store.list_by_filters")
    def list_by_filters(
        self,
        filters: ItemFilters,
        limit: int = DEFAULT_LIST_LIMIT,
        offset: int = 0,
        sort: str = "created_at",
        direction: str = "desc",
    ) -> List[WardrobeItem]:
        where: List[str] = []
        params: List[object] = []

        for column, value in (
            ("category", filters.category),
            ("style", filters.style),
            ("season", filters.season),
            ("status", filters.status),
            ("user_id", filters.user_id),
        ):
            if value:
                where.append(f"{column} = ?")
                params.append(value)

        for column, values in (("colors", filters.colors), ("tags", filters.tags)):
            wanted = [value for value in values if value]
            if wanted:
                placeholders = ", ".join("?" for _ in wanted)
                where.append(
                    f"EXISTS (SELECT 1 FROM json_each(wardrobe_items.{column}) AS entry "
                    f"WHERE entry.value IN ({placeholders}))"
                )
                params.extend(wanted)

        if filters.q:
            like = _like_pattern(filters.q)
            fields = ("category", "style", "tags", "colors")
            where.append("(" + " OR ".join(f"LOWER({name}) LIKE ? ESCAPE '\\'" for name in fields) + ")")
            params.extend([like] * len(fields))

        sort_column = sort if sort in SORT_COLUMNS else "created_at"
        sort_dir = "ASC" if str(direction).lower() == "asc" else "DESC"
        where_sql = f"WHERE {' AND '.join(where)}" if where else ""
        params.extend([min(max(int(limit), 1), MAX_LIST_LIMIT), max(int(offset), 0)])
        sql = f"""
            SELECT * FROM wardrobe_items
            {where_sql}
            ORDER BY {sort_column} {sort_dir}, rowid {sort_dir}
            LIMIT ? OFFSET ?
        """
        with self._connect() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [self._row_to_item(row) for row in rows]


__all__ = ["WardrobeStore", "SQLiteWardrobeStore", "ItemFilters", "MAX_LIST_LIMIT"]
