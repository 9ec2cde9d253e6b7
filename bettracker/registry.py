"""
bettracker/registry.py — Canonical Registry (teams, players, bet types)
========================================================================
Owns the published snapshot and lookup maps for every entity kind.

Responsibilities:
- Load each kind from the store, validate records, fall back to seed data
- Overlay new seed entities when SEED_VERSION moves past the stored version
- Mutations (add / update / remove / disable / enable / add_alias /
  replace_snapshot / reset_to_seed) as whole-snapshot replacement
- Rebuild lookup maps and bump the version once per published change
- Save the new snapshot; report (never raise) write failures

Publication model:
  Writers take self._lock, build the next snapshot and its maps completely,
  then publish both with one dict item assignment. Readers never lock and
  always see either the previous or the next state of a kind.

Snapshots are sorted by (lookup key of canonical, sport) before maps are
built, so the "first entity keeps a contested key" rule does not depend on
storage order.

No module-level singleton: construct a CanonicalRegistry and pass it around.

DO NOT add Streamlit imports to this file.
"""

import dataclasses
import logging
import threading
from dataclasses import dataclass
from typing import Optional

from bettracker.lookup_key import dedupe_by_key, normalize
from bettracker.lookup_maps import LookupMaps, build_lookup_maps
from bettracker.models import ENTITY_CLASSES, ENTITY_KINDS, Team, check_kind, generate_team_id
from bettracker.records import decode_snapshot, encode_entity
from bettracker.seed_data import SEED_VERSION, seed_entities
from bettracker.store import PersistenceWriteError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MutationResult:
    """
    ok:            The change was applied and published in memory.
    error:         "duplicate", "not_found" or "invalid" when ok is False.
    persisted:     The new snapshot reached the store.
    persist_error: Message of the PersistenceWriteError, if the save failed.
    """
    ok: bool
    error: Optional[str] = None
    persisted: bool = False
    persist_error: Optional[str] = None


@dataclass(frozen=True)
class _KindState:
    snapshot: tuple
    maps: LookupMaps


def _identity(entity) -> tuple[str, str]:
    return normalize(entity.canonical), entity.sport


def _sort_key(entity) -> tuple[str, str]:
    return normalize(entity.canonical), entity.sport


def _storage_key(kind: str) -> str:
    return f"registry.{kind}"


def _seed_version_key(kind: str) -> str:
    return f"registry.{kind}.seed_version"


def _clean(entity):
    """Trimmed names, deduplicated aliases/abbreviations; None if unusable."""
    canonical = (entity.canonical or "").strip()
    sport = (entity.sport or "").strip()
    if not normalize(canonical) or not sport:
        return None
    changes = {
        "canonical": canonical,
        "sport": sport,
        "aliases": dedupe_by_key(entity.aliases),
    }
    if isinstance(entity, Team):
        changes["abbreviations"] = dedupe_by_key(entity.abbreviations)
    return dataclasses.replace(entity, **changes)


def _carry_team_id(old, new):
    """
    A team id derived from the old sport / abbreviation follows an update.

    Ids set explicitly (not derivable from the old fields) are kept.
    """
    if not isinstance(new, Team) or new.id != old.id:
        return new
    if old.id != generate_team_id(old.sport, old.abbreviations, old.canonical):
        return new
    return dataclasses.replace(new, id=generate_team_id(new.sport, new.abbreviations, new.canonical))


class CanonicalRegistry:
    """
    Canonical entities for all three kinds, plus their lookup maps.

    Args:
        store:        Object with load(key) / save(key, value), usually a
                      SqliteStore. None keeps everything in memory.
        seeds:        Per-kind override of the built-in seed entities,
                      e.g. {"team": (Team(...),)}. Kinds not given use the
                      bundled seed data.
        seed_version: Version of the seeds in use (defaults to SEED_VERSION).

    The constructor loads immediately; call load() again to re-read the store.
    """

    def __init__(self, store=None, seeds: Optional[dict] = None, seed_version: int = SEED_VERSION) -> None:
        self._store = store
        self._seeds = {
            kind: tuple((seeds or {}).get(kind, seed_entities(kind)))
            for kind in ENTITY_KINDS
        }
        self._seed_version = seed_version
        self._lock = threading.Lock()
        self._state: dict[str, _KindState] = {}
        self._version = 0
        self.load()

    # ------------------------------------------------------------------
    # Reads (lock-free)
    # ------------------------------------------------------------------

    @property
    def version(self) -> int:
        """Bumped by exactly 1 per rebuild. Consumers compare it to cache derived data."""
        return self._version

    def snapshot(self, kind: str) -> tuple:
        return self._state[check_kind(kind)].snapshot

    def maps(self, kind: str) -> LookupMaps:
        return self._state[check_kind(kind)].maps

    def get(self, kind: str, canonical: str, sport: str):
        """Entity by (canonical, sport), disabled ones included. None if absent."""
        target = (normalize(canonical), sport)
        for entity in self.snapshot(kind):
            if _identity(entity) == target:
                return entity
        return None

    def get_team_by_id(self, team_id: str) -> Optional[Team]:
        """Active team by stable id, e.g. "NBA:PHX"."""
        return self.maps("team").teams_by_id.get(team_id)

    def sports(self, kind: Optional[str] = None) -> list[str]:
        """Sorted distinct sports across one kind, or all kinds."""
        kinds = [check_kind(kind)] if kind else list(ENTITY_KINDS)
        return sorted({e.sport for k in kinds for e in self.snapshot(k)})

    # ------------------------------------------------------------------
    # Load
    # ------------------------------------------------------------------

    def load(self) -> None:
        """(Re)load every kind from the store, falling back to seed data."""
        with self._lock:
            for kind in ENTITY_KINDS:
                entities, overlaid = self._load_kind(kind)
                self._publish(kind, entities)
                if overlaid:
                    self._persist(kind)

    def _load_kind(self, kind: str) -> tuple[list, bool]:
        seeds = list(self._seeds[kind])
        if self._store is None:
            return seeds, False

        raw = self._store.load(_storage_key(kind))
        if raw is None:
            logger.info("No stored %s registry, using %d seed entities", kind, len(seeds))
            return seeds, False
        if not isinstance(raw, list):
            logger.warning(
                "Stored %s registry is %s, not a list; using seed data", kind, type(raw).__name__
            )
            return seeds, False

        entities, rejected = decode_snapshot(kind, raw)
        if rejected and not entities:
            logger.warning(
                "All %d stored %s records are invalid; using seed data", rejected, kind
            )
            return seeds, False
        if rejected:
            logger.warning("Loaded %s registry with %d record(s) dropped", kind, rejected)

        stored_version = self._store.load(_seed_version_key(kind))
        if not isinstance(stored_version, int) or isinstance(stored_version, bool):
            stored_version = 0
        if stored_version >= self._seed_version:
            return entities, False

        present = {_identity(e) for e in entities}
        added = [s for s in seeds if _identity(s) not in present]
        if added:
            logger.info(
                "Seed v%d → v%d: adding %d new %s entities",
                stored_version, self._seed_version, len(added), kind,
            )
        return entities + added, True

    # ------------------------------------------------------------------
    # Publish / persist (caller holds the lock)
    # ------------------------------------------------------------------

    def _publish(self, kind: str, entities) -> tuple:
        snapshot = tuple(sorted(entities, key=_sort_key))
        maps = build_lookup_maps(kind, snapshot)
        self._state[kind] = _KindState(snapshot=snapshot, maps=maps)
        self._version += 1
        if maps.collisions:
            logger.debug("%s maps rebuilt with %d colliding keys", kind, len(maps.collisions))
        return snapshot

    def _persist(self, kind: str) -> MutationResult:
        if self._store is None:
            return MutationResult(True)
        records = [encode_entity(e) for e in self._state[kind].snapshot]
        try:
            self._store.save(_storage_key(kind), records)
            self._store.save(_seed_version_key(kind), self._seed_version)
        except PersistenceWriteError as exc:
            logger.error("Failed to save %s registry (kept in memory): %s", kind, exc)
            return MutationResult(True, persisted=False, persist_error=str(exc))
        return MutationResult(True, persisted=True)

    def _commit(self, kind: str, entities) -> MutationResult:
        self._publish(kind, entities)
        return self._persist(kind)

    def _index_of(self, snapshot, canonical: str, sport: str) -> int:
        target = (normalize(canonical), sport)
        for i, entity in enumerate(snapshot):
            if _identity(entity) == target:
                return i
        return -1

    def _check_type(self, kind: str, entity) -> None:
        expected = ENTITY_CLASSES[check_kind(kind)]
        if not isinstance(entity, expected):
            raise ValueError(f"{kind} registry expects {expected.__name__}, got {type(entity).__name__}")

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add(self, kind: str, entity) -> MutationResult:
        """Add a new entity. (canonical, sport) must not exist yet."""
        self._check_type(kind, entity)
        entity = _clean(entity)
        if entity is None:
            return MutationResult(False, error="invalid")
        with self._lock:
            snapshot = self._state[kind].snapshot
            if self._index_of(snapshot, entity.canonical, entity.sport) >= 0:
                return MutationResult(False, error="duplicate")
            return self._commit(kind, [*snapshot, entity])

    def update(self, kind: str, canonical: str, sport: str, entity) -> MutationResult:
        """Replace the entity identified by (canonical, sport) with entity."""
        self._check_type(kind, entity)
        entity = _clean(entity)
        if entity is None:
            return MutationResult(False, error="invalid")
        with self._lock:
            snapshot = list(self._state[kind].snapshot)
            index = self._index_of(snapshot, canonical, sport)
            if index < 0:
                return MutationResult(False, error="not_found")
            clash = self._index_of(snapshot, entity.canonical, entity.sport)
            if clash >= 0 and clash != index:
                return MutationResult(False, error="duplicate")
            snapshot[index] = _carry_team_id(snapshot[index], entity)
            return self._commit(kind, snapshot)

    def remove(self, kind: str, canonical: str, sport: str) -> MutationResult:
        with self._lock:
            snapshot = list(self._state[check_kind(kind)].snapshot)
            index = self._index_of(snapshot, canonical, sport)
            if index < 0:
                return MutationResult(False, error="not_found")
            del snapshot[index]
            return self._commit(kind, snapshot)

    def disable(self, kind: str, canonical: str, sport: str) -> MutationResult:
        """Hide an entity from resolution; it stays on the snapshot."""
        return self._set_disabled(kind, canonical, sport, True)

    def enable(self, kind: str, canonical: str, sport: str) -> MutationResult:
        return self._set_disabled(kind, canonical, sport, False)

    def _set_disabled(self, kind: str, canonical: str, sport: str, disabled: bool) -> MutationResult:
        with self._lock:
            snapshot = list(self._state[check_kind(kind)].snapshot)
            index = self._index_of(snapshot, canonical, sport)
            if index < 0:
                return MutationResult(False, error="not_found")
            if snapshot[index].disabled == disabled:
                return MutationResult(True)
            snapshot[index] = dataclasses.replace(snapshot[index], disabled=disabled)
            return self._commit(kind, snapshot)

    def add_alias(self, kind: str, canonical: str, sport: str, alias: str) -> MutationResult:
        """
        Append alias to an existing entity.

        An alias whose lookup key the entity already answers to is accepted
        without a rebuild.
        """
        alias = (alias or "").strip()
        if not normalize(alias):
            return MutationResult(False, error="invalid")
        with self._lock:
            snapshot = list(self._state[check_kind(kind)].snapshot)
            index = self._index_of(snapshot, canonical, sport)
            if index < 0:
                return MutationResult(False, error="not_found")
            entity = snapshot[index]
            if normalize(alias) in {normalize(s) for s in entity.spellings()}:
                return MutationResult(True)
            snapshot[index] = dataclasses.replace(entity, aliases=(*entity.aliases, alias))
            return self._commit(kind, snapshot)

    def replace_snapshot(self, kind: str, entities) -> MutationResult:
        """
        Publish a whole new snapshot for kind (bulk import / editor save).

        Unusable entities and later duplicates of (canonical, sport) are
        dropped with a warning.
        """
        check_kind(kind)
        kept = []
        seen: set[tuple[str, str]] = set()
        for entity in entities:
            self._check_type(kind, entity)
            cleaned = _clean(entity)
            if cleaned is None:
                logger.warning("Dropping unusable %s entity %r", kind, entity)
                continue
            if _identity(cleaned) in seen:
                logger.warning("Dropping duplicate %s entity %r (%s)", kind, cleaned.canonical, cleaned.sport)
                continue
            seen.add(_identity(cleaned))
            kept.append(cleaned)
        with self._lock:
            return self._commit(kind, kept)

    def reset_to_seed(self, kind: str) -> MutationResult:
        """Discard user edits for kind and republish the seed entities."""
        with self._lock:
            return self._commit(check_kind(kind), list(self._seeds[kind]))
