"""
bettracker/lookup_maps.py — Lookup-Map Builder
===============================================
Derived, disposable indexes built from one registry snapshot.

build_lookup_maps() is a pure function of (kind, snapshot): rebuilding from
the same snapshot always yields the same keys and collisions. The registry
throws the previous maps away on every mutation.

Keys registered per active entity:
  - canonical name, every alias
  - teams: every abbreviation
  - players, bet types: each of the above twice, "{sport}::{key}" and
    bare key

Collision rule: the first entity in snapshot order keeps a contested key.
Every distinct canonical name claiming the key (names compared by lookup
key) is listed in collisions, so the resolver reports ambiguity.

Disabled entities are skipped entirely. They stay on the snapshot only.

DO NOT add store or Streamlit imports to this file.
"""

from dataclasses import dataclass, field

from bettracker.lookup_key import normalize, scoped_key
from bettracker.models import check_kind

# Kinds also registered under "{sport}::{key}".
SCOPED_KINDS = ("player", "betType")


@dataclass(frozen=True)
class LookupMaps:
    """
    keys:         lookup key → owning entity
    collisions:   lookup key → distinct canonical names (only keys with 2+)
    by_canonical: canonical lookup key → active entities with that name
                  (one per sport at most), used to expand ambiguity candidates
    teams_by_id:  team id → team (teams only; empty otherwise)
    """
    kind: str
    keys: dict = field(default_factory=dict)
    collisions: dict = field(default_factory=dict)
    by_canonical: dict = field(default_factory=dict)
    teams_by_id: dict = field(default_factory=dict)

    def lookup(self, key: str):
        return self.keys.get(key)

    def candidates_for(self, key: str) -> list:
        return list(self.collisions.get(key, ()))


def build_lookup_maps(kind: str, snapshot) -> LookupMaps:
    """
    Build exact-match indexes for one kind from an ordered snapshot.

    Args:
        kind:     "team", "player" or "betType".
        snapshot: Entities in the registry's published order.

    Returns:
        A fresh LookupMaps. Never raises for data problems; empty spellings
        are simply not registered.
    """
    check_kind(kind)
    keys: dict = {}
    claimants: dict[str, dict[str, str]] = {}
    by_canonical: dict[str, list] = {}
    teams_by_id: dict = {}

    def register(key: str, entity) -> None:
        names = claimants.get(key)
        if names is None:
            keys[key] = entity
            claimants[key] = names = {}
        names.setdefault(normalize(entity.canonical), entity.canonical)

    for entity in snapshot:
        if entity.disabled:
            continue

        by_canonical.setdefault(normalize(entity.canonical), []).append(entity)
        if kind == "team":
            teams_by_id.setdefault(entity.id, entity)

        for spelling in entity.spellings():
            key = normalize(spelling)
            if not key:
                continue
            if kind in SCOPED_KINDS:
                register(scoped_key(entity.sport, key), entity)
            register(key, entity)

    collisions = {key: list(names.values()) for key, names in claimants.items() if len(names) > 1}
    return LookupMaps(
        kind=kind,
        keys=keys,
        collisions=collisions,
        by_canonical=by_canonical,
        teams_by_id=teams_by_id,
    )
