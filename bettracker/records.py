"""
bettracker/records.py — Record decode / validate boundary
==========================================================
The one place raw dicts (stored JSON, uploaded files, SQLite rows) become
typed models.

Responsibilities:
- decode_record: check one canonical-entity dict field by field
- decode_snapshot: decode a stored list, drop malformed and duplicate records
- encode_entity: inverse of decode_record, used when saving
- decode_wager / decode_unresolved_item: same pattern for wagers and queue rows

Decoders never raise on malformed input. They return a DecodeResult with
ok=False and a list of human-readable problems; callers decide whether to
drop, log or surface them.

Both snake_case and camelCase field names are accepted on input
("bet_type" / "betType"), so exports from the older JSON format load as-is.
Output is always snake_case.

DO NOT add registry, resolver or Streamlit imports to this file.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from bettracker.lookup_key import dedupe_by_key, normalize
from bettracker.models import (
    BET_TYPES,
    UNRESOLVED_ENTITY_TYPES,
    WAGER_RESULTS,
    BetTypeEntity,
    Player,
    Team,
    UnresolvedItem,
    Wager,
    WagerLeg,
    check_kind,
)

logger = logging.getLogger(__name__)

_MISSING = object()


@dataclass
class DecodeResult:
    ok: bool
    value: Any = None
    errors: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Field readers
# ---------------------------------------------------------------------------

def _get(raw: dict, *names: str):
    for name in names:
        if name in raw:
            return raw[name]
    return _MISSING


def _required_str(raw: dict, errors: list[str], *names: str) -> str:
    value = _get(raw, *names)
    if value is _MISSING:
        errors.append(f"{names[0]}: missing")
        return ""
    if not isinstance(value, str):
        errors.append(f"{names[0]}: expected string, got {type(value).__name__}")
        return ""
    if not value.strip():
        errors.append(f"{names[0]}: empty")
        return ""
    return value.strip()


def _optional_str(raw: dict, errors: list[str], *names: str, default=None):
    value = _get(raw, *names)
    if value is _MISSING or value is None:
        return default
    if not isinstance(value, str):
        errors.append(f"{names[0]}: expected string, got {type(value).__name__}")
        return default
    return value


def _str_list(raw: dict, errors: list[str], *names: str, required: bool = False) -> tuple:
    value = _get(raw, *names)
    if value is _MISSING or value is None:
        if required:
            errors.append(f"{names[0]}: missing")
        return ()
    if not isinstance(value, (list, tuple)):
        errors.append(f"{names[0]}: expected list, got {type(value).__name__}")
        return ()
    bad = [v for v in value if not isinstance(v, str)]
    if bad:
        errors.append(f"{names[0]}: {len(bad)} non-string item(s)")
        return ()
    return tuple(value)


def _bool(raw: dict, errors: list[str], *names: str, default: bool = False) -> bool:
    value = _get(raw, *names)
    if value is _MISSING or value is None:
        return default
    if not isinstance(value, bool):
        errors.append(f"{names[0]}: expected bool, got {type(value).__name__}")
        return default
    return value


def _number(raw: dict, errors: list[str], *names: str) -> float:
    value = _get(raw, *names)
    if value is _MISSING:
        errors.append(f"{names[0]}: missing")
        return 0.0
    # bool is an int subclass; a True stake is a data error
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        errors.append(f"{names[0]}: expected number, got {type(value).__name__}")
        return 0.0
    return float(value)


def _optional_int(raw: dict, errors: list[str], *names: str) -> Optional[int]:
    value = _get(raw, *names)
    if value is _MISSING or value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        errors.append(f"{names[0]}: expected integer, got {type(value).__name__}")
        return None
    return value


# ---------------------------------------------------------------------------
# Canonical entities
# ---------------------------------------------------------------------------

def decode_record(kind: str, raw) -> DecodeResult:
    """
    Validate one stored canonical-entity record and build the model.

    Aliases and abbreviations are deduplicated by lookup key (first spelling
    wins). A team without a stored id gets one derived from sport and
    abbreviations.

    Args:
        kind: "team", "player" or "betType". Unknown kinds raise ValueError;
              that is a caller bug, not bad data.
        raw:  Anything. Non-dicts are rejected.

    Returns:
        DecodeResult(ok=True, value=entity) or DecodeResult(ok=False, errors=[...]).

    >>> decode_record("team", {"canonical": "Phoenix Suns", "sport": "NBA",
    ...                        "aliases": ["Suns"], "abbreviations": ["PHX"]}).value.id
    'NBA:PHX'
    >>> decode_record("player", {"canonical": 7, "sport": "NBA", "aliases": []}).errors
    ['canonical: expected string, got int']
    """
    check_kind(kind)
    if not isinstance(raw, dict):
        return DecodeResult(False, errors=[f"record: expected object, got {type(raw).__name__}"])

    errors: list[str] = []
    canonical = _required_str(raw, errors, "canonical")
    sport = _required_str(raw, errors, "sport")
    aliases = _str_list(raw, errors, "aliases", required=True)
    disabled = _bool(raw, errors, "disabled")

    if kind == "team":
        abbreviations = _str_list(raw, errors, "abbreviations", required=True)
        team_id = _optional_str(raw, errors, "id", default="")
        if errors:
            return DecodeResult(False, errors=errors)
        entity = Team(
            canonical=canonical,
            sport=sport,
            aliases=dedupe_by_key(aliases),
            disabled=disabled,
            abbreviations=dedupe_by_key(abbreviations),
            id=team_id.strip(),
        )
    elif kind == "player":
        team = _optional_str(raw, errors, "team")
        if errors:
            return DecodeResult(False, errors=errors)
        entity = Player(
            canonical=canonical,
            sport=sport,
            aliases=dedupe_by_key(aliases),
            disabled=disabled,
            team=team.strip() if team and team.strip() else None,
        )
    else:
        description = _optional_str(raw, errors, "description", default="")
        if errors:
            return DecodeResult(False, errors=errors)
        entity = BetTypeEntity(
            canonical=canonical,
            sport=sport,
            aliases=dedupe_by_key(aliases),
            disabled=disabled,
            description=description,
        )
    return DecodeResult(True, value=entity)


def decode_snapshot(kind: str, raws) -> tuple[list, int]:
    """
    Decode a stored list of records for one kind.

    Malformed records are dropped with one warning each. A later record with
    the same (canonical key, sport) as an earlier one is dropped too, so the
    per-sport canonical uniqueness invariant holds for whatever survives.

    Args:
        kind: Entity kind.
        raws: The stored list. Callers check list-ness before calling.

    Returns:
        (entities, rejected_count) — entities in input order; rejected_count
        counts malformed and duplicate records together.
    """
    entities = []
    seen: set[tuple[str, str]] = set()
    rejected = 0
    for index, raw in enumerate(raws):
        result = decode_record(kind, raw)
        if not result.ok:
            rejected += 1
            logger.warning(
                "Dropping malformed %s record #%d: %s", kind, index, "; ".join(result.errors)
            )
            continue
        entity = result.value
        identity = (normalize(entity.canonical), entity.sport)
        if identity in seen:
            rejected += 1
            logger.warning(
                "Dropping duplicate %s record #%d: %r (%s)",
                kind, index, entity.canonical, entity.sport,
            )
            continue
        seen.add(identity)
        entities.append(entity)
    return entities, rejected


def encode_entity(entity) -> dict:
    """Serialize an entity to the stored dict shape (JSON-safe)."""
    record = {
        "canonical": entity.canonical,
        "sport": entity.sport,
        "aliases": list(entity.aliases),
    }
    if entity.disabled:
        record["disabled"] = True
    if isinstance(entity, Team):
        record["abbreviations"] = list(entity.abbreviations)
        record["id"] = entity.id
    elif isinstance(entity, Player):
        if entity.team:
            record["team"] = entity.team
    elif isinstance(entity, BetTypeEntity):
        if entity.description:
            record["description"] = entity.description
    return record


# ---------------------------------------------------------------------------
# Wagers
# ---------------------------------------------------------------------------

def _decode_leg(raw, path: str, errors: list[str]) -> Optional[WagerLeg]:
    if not isinstance(raw, dict):
        errors.append(f"{path}: expected object, got {type(raw).__name__}")
        return None

    leg_errors: list[str] = []
    entities = _str_list(raw, leg_errors, "entities")
    entity_type = _optional_str(raw, leg_errors, "entity_type", "entityType", default="unknown")
    market = _optional_str(raw, leg_errors, "market", default="")
    result = _optional_str(raw, leg_errors, "result")
    odds = _optional_int(raw, leg_errors, "odds")
    is_group_leg = _bool(raw, leg_errors, "is_group_leg", "isGroupLeg")

    target = _get(raw, "target")
    if target is _MISSING:
        target = None
    elif target is not None and (isinstance(target, bool) or not isinstance(target, (int, float, str))):
        leg_errors.append(f"target: expected number or string, got {type(target).__name__}")
        target = None

    children = []
    raw_children = _get(raw, "children")
    if raw_children not in (_MISSING, None):
        if not isinstance(raw_children, list):
            leg_errors.append(f"children: expected list, got {type(raw_children).__name__}")
        else:
            for i, child in enumerate(raw_children):
                decoded = _decode_leg(child, f"{path}.children[{i}]", errors)
                if decoded is not None:
                    children.append(decoded)

    errors.extend(f"{path}.{e}" for e in leg_errors)
    if leg_errors:
        return None
    return WagerLeg(
        entities=[e.strip() for e in entities if e.strip()],
        entity_type=entity_type,
        market=market,
        result=result,
        odds=odds,
        target=target,
        is_group_leg=is_group_leg,
        children=children,
    )


def decode_wager(raw) -> DecodeResult:
    """
    Validate one wager dict from the import pipeline.

    Required: id, stake, payout. result defaults to "pending" and bet_type to
    "single"; both must be one of the known values when present. Any invalid
    leg rejects the whole wager, since partial legs would skew leg counts.

    >>> decode_wager({"id": "w1", "stake": 10, "payout": 25, "result": "win"}).value.stake
    10.0
    >>> decode_wager({"id": "w1", "stake": "10", "payout": 0}).ok
    False
    """
    if not isinstance(raw, dict):
        return DecodeResult(False, errors=[f"wager: expected object, got {type(raw).__name__}"])

    errors: list[str] = []
    wager_id = _required_str(raw, errors, "id")
    stake = _number(raw, errors, "stake")
    payout = _number(raw, errors, "payout")

    result = _optional_str(raw, errors, "result", default="pending")
    if result.lower() not in WAGER_RESULTS:
        errors.append(f"result: unknown value {result!r}")
    bet_type = _optional_str(raw, errors, "bet_type", "betType", default="single")
    if bet_type not in BET_TYPES:
        errors.append(f"bet_type: unknown value {bet_type!r}")

    book = _optional_str(raw, errors, "book", default="")
    bet_id = _optional_str(raw, errors, "bet_id", "betId", default="")
    placed_at = _optional_str(raw, errors, "placed_at", "placedAt", default="")
    sport = _optional_str(raw, errors, "sport", default="")
    description = _optional_str(raw, errors, "description", default="")

    legs = []
    raw_legs = _get(raw, "legs")
    if raw_legs not in (_MISSING, None):
        if not isinstance(raw_legs, list):
            errors.append(f"legs: expected list, got {type(raw_legs).__name__}")
        else:
            for i, raw_leg in enumerate(raw_legs):
                leg = _decode_leg(raw_leg, f"legs[{i}]", errors)
                if leg is not None:
                    legs.append(leg)

    if errors:
        return DecodeResult(False, errors=errors)
    return DecodeResult(True, value=Wager(
        id=wager_id,
        stake=stake,
        payout=payout,
        result=result.lower(),
        bet_type=bet_type,
        book=book,
        bet_id=bet_id or wager_id,
        placed_at=placed_at,
        sport=sport,
        description=description,
        legs=legs,
    ))


def decode_wagers(raws) -> tuple[list[Wager], int]:
    """Decode a list of wager dicts; malformed ones are logged and counted."""
    if not isinstance(raws, list):
        logger.warning("Wager payload is %s, expected list", type(raws).__name__)
        return [], 0
    wagers = []
    rejected = 0
    for index, raw in enumerate(raws):
        result = decode_wager(raw)
        if result.ok:
            wagers.append(result.value)
        else:
            rejected += 1
            logger.warning("Dropping malformed wager #%d: %s", index, "; ".join(result.errors))
    return wagers, rejected


# ---------------------------------------------------------------------------
# Queue items
# ---------------------------------------------------------------------------

def decode_unresolved_item(raw) -> DecodeResult:
    """Validate a queue record (a stored row or an imported dict)."""
    if not isinstance(raw, dict):
        return DecodeResult(False, errors=[f"item: expected object, got {type(raw).__name__}"])

    errors: list[str] = []
    item_id = _required_str(raw, errors, "id")
    raw_value = _required_str(raw, errors, "raw_value", "rawValue")
    entity_type = _optional_str(raw, errors, "entity_type", "entityType", default="unknown")
    # older exports call bet types "stat"
    if entity_type == "stat":
        entity_type = "betType"
    if entity_type not in UNRESOLVED_ENTITY_TYPES:
        errors.append(f"entity_type: unknown value {entity_type!r}")
    encountered_at = _required_str(raw, errors, "encountered_at", "encounteredAt")
    book = _optional_str(raw, errors, "book", default="")
    bet_id = _required_str(raw, errors, "bet_id", "betId")
    leg_index = _optional_int(raw, errors, "leg_index", "legIndex")
    market = _optional_str(raw, errors, "market")
    sport = _optional_str(raw, errors, "sport")
    context = _optional_str(raw, errors, "context")

    if errors:
        return DecodeResult(False, errors=errors)
    return DecodeResult(True, value=UnresolvedItem(
        id=item_id,
        raw_value=raw_value,
        entity_type=entity_type,
        encountered_at=encountered_at,
        book=book,
        bet_id=bet_id,
        leg_index=leg_index,
        market=market or None,
        sport=sport or None,
        context=context or None,
    ))
