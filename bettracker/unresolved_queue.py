"""
bettracker/unresolved_queue.py — Unresolved-Item Queue
=======================================================
Persistent queue of raw mentions the resolver could not map with confidence,
waiting for a human to map, create or dismiss them.

Responsibilities:
- enqueue / dequeue / list / count / clear over a SQLite table
- Stable item ids: "{lookup key}::{bet id}[::{leg index}]"
- collect_unresolved_items: walk imported wagers, resolve every mention,
  build queue items for unresolved and ambiguous outcomes
- group_items: collapse repeat mentions for display

Invariants:
- enqueue is idempotent per id (INSERT OR IGNORE; first sighting kept)
- only enqueue / dequeue / clear write; list / count never do
- no resolution candidates are stored; review recomputes them

Schema: unresolved_queue table
  id              TEXT PRIMARY KEY
  raw_value       TEXT NOT NULL
  entity_type     TEXT NOT NULL     -- "team", "player", "betType", "unknown"
  encountered_at  TEXT NOT NULL     -- ISO 8601 UTC, first seen
  book            TEXT DEFAULT ''
  bet_id          TEXT NOT NULL
  leg_index       INTEGER           -- NULL for ticket-level mentions
  market          TEXT
  sport           TEXT
  context         TEXT              -- short description snippet

DO NOT add Streamlit imports to this file.
"""

import logging
import sqlite3
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from bettracker.lookup_key import normalize
from bettracker.models import UnresolvedItem
from bettracker.records import decode_unresolved_item
from bettracker.resolver import ResolveContext, resolve
from bettracker.store import PersistenceWriteError, get_conn

logger = logging.getLogger(__name__)

_CONTEXT_MAX_LEN = 120

_SCHEMA_SQL = """
PRAGMA journal_mode = WAL;
PRAGMA synchronous = NORMAL;

CREATE TABLE IF NOT EXISTS unresolved_queue (
    id              TEXT PRIMARY KEY,
    raw_value       TEXT NOT NULL,
    entity_type     TEXT NOT NULL,
    encountered_at  TEXT NOT NULL,
    book            TEXT DEFAULT '',
    bet_id          TEXT NOT NULL,
    leg_index       INTEGER,
    market          TEXT,
    sport           TEXT,
    context         TEXT
);

CREATE INDEX IF NOT EXISTS idx_uq_type_sport
    ON unresolved_queue(entity_type, sport);
"""

_COLUMNS = (
    "id", "raw_value", "entity_type", "encountered_at", "book",
    "bet_id", "leg_index", "market", "sport", "context",
)


def generate_item_id(raw_value: str, bet_id: str, leg_index: Optional[int] = None) -> str:
    """
    Stable queue id for one mention on one leg of one ticket.

    >>> generate_item_id("  Phoenix  SUNS", "DK-123", 0)
    'phoenix suns::DK-123::0'
    >>> generate_item_id("Suns", "DK-123")
    'suns::DK-123'
    """
    parts = [normalize(raw_value), bet_id]
    if leg_index is not None:
        parts.append(str(leg_index))
    return "::".join(parts)


# ---------------------------------------------------------------------------
# Queue
# ---------------------------------------------------------------------------

class UnresolvedQueue:
    """
    SQLite-backed review queue.

    Args:
        db_path: Override DB file path. Defaults to BETTRACKER_DB_PATH, the
                 same file the registry store uses.
    """

    def __init__(self, db_path: Optional[str] = None) -> None:
        self.db_path = db_path
        conn = self._connect()
        try:
            conn.executescript(_SCHEMA_SQL)
            conn.commit()
        except sqlite3.Error as exc:
            raise PersistenceWriteError(f"Cannot initialize unresolved queue: {exc}") from exc
        finally:
            conn.close()

    def _connect(self) -> sqlite3.Connection:
        try:
            return get_conn(self.db_path)
        except (sqlite3.Error, OSError) as exc:
            raise PersistenceWriteError(f"Cannot open unresolved queue DB: {exc}") from exc

    # -- writes ---------------------------------------------------------

    def enqueue(self, items) -> int:
        """
        Insert items, ignoring ids already queued.

        Returns:
            Number of new rows (0 when every id was already present).

        Raises:
            PersistenceWriteError: the write failed; nothing is committed.
        """
        rows = [tuple(getattr(item, col) for col in _COLUMNS) for item in items]
        if not rows:
            return 0
        conn = self._connect()
        try:
            added = 0
            for row in rows:
                cur = conn.execute(
                    f"INSERT OR IGNORE INTO unresolved_queue ({', '.join(_COLUMNS)}) "
                    f"VALUES ({', '.join('?' for _ in _COLUMNS)})",
                    row,
                )
                added += cur.rowcount
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            logger.error("enqueue failed: %s", exc)
            raise PersistenceWriteError(f"enqueue failed: {exc}") from exc
        finally:
            conn.close()
        if added:
            logger.info("Queued %d unresolved item(s) (%d already present)", added, len(rows) - added)
        return added

    def dequeue(self, ids) -> int:
        """Remove items by id. Unknown ids are ignored. Returns rows removed."""
        ids = list(dict.fromkeys(ids))
        if not ids:
            return 0
        conn = self._connect()
        try:
            cur = conn.execute(
                f"DELETE FROM unresolved_queue WHERE id IN ({', '.join('?' for _ in ids)})",
                ids,
            )
            conn.commit()
            return cur.rowcount
        except sqlite3.Error as exc:
            conn.rollback()
            logger.error("dequeue failed: %s", exc)
            raise PersistenceWriteError(f"dequeue failed: {exc}") from exc
        finally:
            conn.close()

    def clear(self) -> int:
        """Empty the queue. Returns rows removed."""
        conn = self._connect()
        try:
            cur = conn.execute("DELETE FROM unresolved_queue")
            conn.commit()
            return cur.rowcount
        except sqlite3.Error as exc:
            conn.rollback()
            logger.error("clear failed: %s", exc)
            raise PersistenceWriteError(f"clear failed: {exc}") from exc
        finally:
            conn.close()

    # -- reads ----------------------------------------------------------

    def list(self, entity_type: Optional[str] = None, sport: Optional[str] = None) -> list[UnresolvedItem]:
        """
        Queued items, oldest first, optionally filtered. Read-only.

        Rows that fail validation are skipped with a warning, not deleted.
        """
        query = f"SELECT {', '.join(_COLUMNS)} FROM unresolved_queue WHERE 1=1"
        params: list = []
        if entity_type:
            query += " AND entity_type = ?"
            params.append(entity_type)
        if sport:
            query += " AND sport = ?"
            params.append(sport)
        query += " ORDER BY encountered_at, rowid"

        conn = get_conn(self.db_path)
        try:
            rows = conn.execute(query, params).fetchall()
        finally:
            conn.close()

        items = []
        for row in rows:
            result = decode_unresolved_item(dict(row))
            if result.ok:
                items.append(result.value)
            else:
                logger.warning("Skipping bad queue row %r: %s", row["id"], "; ".join(result.errors))
        return items

    def get(self, item_id: str) -> Optional[UnresolvedItem]:
        conn = get_conn(self.db_path)
        try:
            row = conn.execute(
                f"SELECT {', '.join(_COLUMNS)} FROM unresolved_queue WHERE id = ?", (item_id,)
            ).fetchone()
        finally:
            conn.close()
        if row is None:
            return None
        result = decode_unresolved_item(dict(row))
        return result.value if result.ok else None

    def count(self) -> int:
        conn = get_conn(self.db_path)
        try:
            return conn.execute("SELECT COUNT(*) FROM unresolved_queue").fetchone()[0]
        finally:
            conn.close()


# ---------------------------------------------------------------------------
# Import-side collection
# ---------------------------------------------------------------------------

def _leg_kinds(entity_type: str) -> tuple[str, ...]:
    if entity_type in ("player", "team"):
        return (entity_type,)
    return ("player", "team")


def collect_unresolved_items(registry, wagers, book: Optional[str] = None,
                             now: Optional[str] = None) -> list[UnresolvedItem]:
    """
    Resolve every mention on every leg and return queue items for the misses.

    Entity mentions are resolved as the leg's entity_type ("unknown" tries
    player, then team); the leg's market is resolved as a bet type. Sport
    context comes from the wager. Unresolved and ambiguous outcomes both
    produce an item. Pure: nothing is written.

    Args:
        registry: CanonicalRegistry.
        wagers:   Iterable of Wager.
        book:     Overrides wager.book (an import batch from one book).
        now:      ISO timestamp for encountered_at (defaults to current UTC).

    Returns:
        Items in encounter order, one per id.
    """
    encountered_at = now or datetime.now(timezone.utc).isoformat()
    items: dict[str, UnresolvedItem] = {}

    for wager in wagers:
        sport = wager.sport or None
        context = ResolveContext(sport=sport)
        bet_id = wager.bet_id or wager.id
        snippet = (wager.description or "")[:_CONTEXT_MAX_LEN] or None

        def queue(raw: str, entity_type: str, leg_index: int, market: str) -> None:
            item_id = generate_item_id(raw, bet_id, leg_index)
            if item_id in items:
                return
            items[item_id] = UnresolvedItem(
                id=item_id,
                raw_value=raw.strip(),
                entity_type=entity_type,
                encountered_at=encountered_at,
                book=book or wager.book,
                bet_id=bet_id,
                leg_index=leg_index,
                market=market or None,
                sport=sport,
                context=snippet,
            )

        for leg_index, leg in wager.iter_legs():
            for raw in leg.entities:
                kinds = _leg_kinds(leg.entity_type)
                outcomes = [resolve(registry, kind, raw, context) for kind in kinds]
                if any(o.is_resolved for o in outcomes):
                    continue
                ambiguous = [k for k, o in zip(kinds, outcomes) if o.status == "ambiguous"]
                if ambiguous:
                    entity_type = ambiguous[0]
                elif len(kinds) == 1:
                    entity_type = kinds[0]
                else:
                    entity_type = "unknown"
                queue(raw, entity_type, leg_index, leg.market)

            if leg.market and not resolve(registry, "betType", leg.market, context).is_resolved:
                queue(leg.market, "betType", leg_index, leg.market)

    return list(items.values())


# ---------------------------------------------------------------------------
# Display grouping
# ---------------------------------------------------------------------------

@dataclass
class UnresolvedGroup:
    """Repeat mentions of one spelling, collapsed for review."""
    entity_type: str
    key: str
    raw_value: str
    sport: Optional[str]
    count: int = 0
    item_ids: list[str] = field(default_factory=list)
    books: list[str] = field(default_factory=list)
    markets: list[str] = field(default_factory=list)
    first_seen: str = ""
    last_seen: str = ""


def group_items(items) -> list[UnresolvedGroup]:
    """
    Group by (entity_type, lookup key, sport), most frequent first.

    raw_value is the first spelling seen. Pure; safe to call on every render.
    """
    groups: dict[tuple, UnresolvedGroup] = {}
    for item in items:
        key = normalize(item.raw_value)
        group_key = (item.entity_type, key, item.sport)
        group = groups.get(group_key)
        if group is None:
            group = UnresolvedGroup(
                entity_type=item.entity_type,
                key=key,
                raw_value=item.raw_value,
                sport=item.sport,
                first_seen=item.encountered_at,
                last_seen=item.encountered_at,
            )
            groups[group_key] = group
        group.count += 1
        group.item_ids.append(item.id)
        if item.book and item.book not in group.books:
            group.books.append(item.book)
        if item.market and item.market not in group.markets:
            group.markets.append(item.market)
        group.first_seen = min(group.first_seen, item.encountered_at)
        group.last_seen = max(group.last_seen, item.encountered_at)

    return sorted(groups.values(), key=lambda g: (-g.count, g.entity_type, g.key, g.sport or ""))
