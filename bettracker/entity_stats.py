"""
bettracker/entity_stats.py — Stake-Attribution Aggregation Engine
==================================================================
Per-entity (player / team / bet type) performance without double-counting
multi-leg ticket money.

Per wager:
  1. classify straight vs multi-leg (parlay, sgp, sgp_plus)
  2. net computed once (pending → 0)
  3. every countable leg (group legs flattened to their children) adds 1 to
     `legs` and to its own result bucket, for each key on the leg
  4. each distinct key on the ticket gets tickets += 1 and straights or
     multi_legs += 1
  5. stake / net go to the entity only for straight wagers; a parlay's
     money belongs to the ticket, not to any one leg

Derived once at the end:
  leg_win_rate     = leg_wins / (leg_wins + leg_losses), 0 when none decided
  roi_on_straights = net_straights / stake_straights * 100, 0 when no stake

Entities that only ever appear on multi-leg tickets are reported with zero
money and their leg record.

Pure and deterministic: never touches the registry's state or the queue.

DO NOT add store or Streamlit imports to this file.
"""

from dataclasses import asdict, dataclass
from typing import Optional

from bettracker.aggregation import calculate_roi, get_net
from bettracker.lookup_key import scoped_key
from bettracker.resolver import ResolveContext, resolve

_RESULT_FIELDS = {
    "WIN": "leg_wins",
    "LOSS": "leg_losses",
    "PUSH": "leg_pushes",
    "PENDING": "leg_pending",
    "UNKNOWN": "leg_unknown",
}


@dataclass
class EntityStats:
    tickets: int = 0
    straights: int = 0
    multi_legs: int = 0
    stake_straights: float = 0.0
    net_straights: float = 0.0
    legs: int = 0
    leg_wins: int = 0
    leg_losses: int = 0
    leg_pushes: int = 0
    leg_pending: int = 0
    leg_unknown: int = 0
    leg_win_rate: float = 0.0
    roi_on_straights: float = 0.0


def compute_entity_stats(wagers, key_extractor) -> dict[str, EntityStats]:
    """
    Attribute tickets, legs and straight-bet money to entity keys.

    Args:
        wagers:        Iterable of Wager.
        key_extractor: Callable(leg, wager) -> iterable of keys, or None.
                       Empty keys are ignored; a key repeated on one leg
                       counts once.

    Returns:
        key → EntityStats, in first-seen order.

    Wagers without legs contribute nothing: there is no entity to credit.
    """
    stats_by_key: dict[str, EntityStats] = {}

    for wager in wagers:
        multi = wager.is_multi_leg
        net = get_net(wager)
        on_ticket: list[str] = []

        for _, leg in wager.iter_legs():
            keys = key_extractor(leg, wager)
            if not keys:
                continue
            result_field = _RESULT_FIELDS[leg.leg_result]
            for key in dict.fromkeys(k for k in keys if k):
                stats = stats_by_key.setdefault(key, EntityStats())
                stats.legs += 1
                setattr(stats, result_field, getattr(stats, result_field) + 1)
                if key not in on_ticket:
                    on_ticket.append(key)

        for key in on_ticket:
            stats = stats_by_key[key]
            stats.tickets += 1
            if multi:
                stats.multi_legs += 1
            else:
                stats.straights += 1
                stats.stake_straights += wager.stake
                stats.net_straights += net

    for stats in stats_by_key.values():
        decided = stats.leg_wins + stats.leg_losses
        stats.leg_win_rate = stats.leg_wins / decided if decided else 0.0
        stats.roi_on_straights = calculate_roi(stats.net_straights, stats.stake_straights)

    return stats_by_key


# ---------------------------------------------------------------------------
# Key extractors
# ---------------------------------------------------------------------------

def resolved_key_extractor(registry, kind: str, unresolved_bucket: Optional[str] = None):
    """
    Build a key extractor that groups by resolved canonical identity.

    Keys are "{sport}::{canonical}". For kind "betType" the leg's market is
    resolved; otherwise the leg's entity mentions are (legs whose
    entity_type names a different kind are skipped).

    Args:
        registry:          CanonicalRegistry, read on every call so the
                           extractor follows later registry changes.
        kind:              "team", "player" or "betType".
        unresolved_bucket: Key for unresolved/ambiguous mentions, e.g.
                           "[Unresolved]". None drops them.
    """

    def extract(leg, wager):
        if kind == "betType":
            mentions = [leg.market] if leg.market else []
        elif leg.entity_type in (kind, "unknown"):
            mentions = leg.entities
        else:
            return None
        context = ResolveContext(sport=wager.sport or None)
        keys = []
        for raw in mentions:
            resolution = resolve(registry, kind, raw, context)
            if resolution.is_resolved:
                keys.append(scoped_key(resolution.entity.sport, resolution.entity.canonical))
            elif unresolved_bucket:
                keys.append(unresolved_bucket)
        return keys

    return extract


def raw_key_extractor(leg, wager):
    """Group by mention text exactly as imported (no resolution)."""
    return [e.strip() for e in leg.entities if e.strip()]


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------

_SORTABLE = set(EntityStats.__dataclass_fields__)


def summarize_entity_stats(stats_by_key: dict[str, EntityStats], sort_by: str = "tickets",
                           limit: Optional[int] = None, descending: bool = True) -> list[dict]:
    """
    Rows for display: {"key", "sport", "name", **stats}, sorted.

    Keys of the form "{sport}::{canonical}" are split into sport and name;
    other keys (raw text, the unresolved bucket) get sport "".

    Raises:
        ValueError: sort_by is not an EntityStats field.
    """
    if sort_by not in _SORTABLE:
        raise ValueError(f"Cannot sort by {sort_by!r}; expected one of {sorted(_SORTABLE)}")
    rows = []
    for key, stats in stats_by_key.items():
        sport, sep, name = key.partition("::")
        if not sep:
            sport, name = "", key
        rows.append({"key": key, "sport": sport, "name": name, **asdict(stats)})
    rows.sort(key=lambda r: (r[sort_by], r["key"]) if not descending else (-r[sort_by], r["key"]))
    return rows[:limit] if limit is not None else rows

