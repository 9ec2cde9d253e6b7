"""
bettracker/models.py — Canonical entities, wagers and legs
===========================================================
Plain dataclasses shared by the registry, resolver, queue and aggregation.

Canonical entities are frozen: the registry replaces whole snapshots and
never edits an entity in place, so any reference a reader holds stays valid.
Collections on entities are tuples for the same reason.

Entity kinds:
  "team"     — Team: canonical, sport, aliases, abbreviations, id
  "player"   — Player: canonical, sport, aliases, team
  "betType"  — BetType: canonical, sport, aliases, description

Wager result states: "win", "loss", "push", "pending".
Leg result states:   "WIN", "LOSS", "PUSH", "PENDING", "UNKNOWN"
                     (lowercase accepted; missing = UNKNOWN).
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Literal, Optional, Union

# ---------------------------------------------------------------------------
# Kinds / result vocab
# ---------------------------------------------------------------------------

EntityKind = Literal["team", "player", "betType"]
ENTITY_KINDS: tuple[str, ...] = ("team", "player", "betType")

WagerResult = Literal["win", "loss", "push", "pending"]
WAGER_RESULTS: tuple[str, ...] = ("win", "loss", "push", "pending")

LEG_RESULTS: tuple[str, ...] = ("WIN", "LOSS", "PUSH", "PENDING", "UNKNOWN")

BetType = Literal["single", "parlay", "sgp", "sgp_plus", "live", "other"]
BET_TYPES: tuple[str, ...] = ("single", "parlay", "sgp", "sgp_plus", "live", "other")

# Parlay family. Everything else is treated as a straight wager.
MULTI_LEG_BET_TYPES: frozenset[str] = frozenset({"parlay", "sgp", "sgp_plus"})

_TEAM_ID_SLUG_RE = re.compile(r"[^A-Za-z0-9]")
_TEAM_ID_SLUG_LEN = 6


def check_kind(kind: str) -> str:
    """Return kind unchanged, or raise ValueError for an unknown entity kind."""
    if kind not in ENTITY_KINDS:
        raise ValueError(f"Unknown entity kind: {kind!r} (expected one of {ENTITY_KINDS})")
    return kind


def generate_team_id(sport: str, abbreviations, canonical: str) -> str:
    """
    Stable team identifier from sport + primary abbreviation.

    Without an abbreviation, the canonical name is stripped to alphanumerics,
    upper-cased and cut to 6 characters.

    >>> generate_team_id("NBA", ["LAL", "LAK"], "Lakers")
    'NBA:LAL'
    >>> generate_team_id("NBA", [], "Los Angeles Lakers")
    'NBA:LOSANG'
    """
    for abbr in abbreviations or ():
        abbr = str(abbr).strip()
        if abbr:
            return f"{sport}:{abbr.upper()}"
    slug = _TEAM_ID_SLUG_RE.sub("", canonical or "").upper()[:_TEAM_ID_SLUG_LEN]
    return f"{sport}:{slug}"


# ---------------------------------------------------------------------------
# Canonical entities
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CanonicalEntity:
    """
    Fields every entity kind shares.

    canonical: Display name. Unique per (kind, sport) by lookup key.
    sport:     Sport tag, e.g. "NBA".
    aliases:   Alternate spellings, deduplicated by lookup key.
    disabled:  Hidden from resolution but kept on the snapshot.
    """
    canonical: str
    sport: str
    aliases: tuple[str, ...] = ()
    disabled: bool = False

    kind = "entity"

    def spellings(self) -> tuple[str, ...]:
        """Every spelling the map builder registers: canonical first, then aliases."""
        return (self.canonical, *self.aliases)


@dataclass(frozen=True)
class Team(CanonicalEntity):
    abbreviations: tuple[str, ...] = ()
    id: str = ""

    kind = "team"

    def __post_init__(self) -> None:
        if not self.id:
            object.__setattr__(
                self, "id", generate_team_id(self.sport, self.abbreviations, self.canonical)
            )

    def spellings(self) -> tuple[str, ...]:
        return (self.canonical, *self.aliases, *self.abbreviations)


@dataclass(frozen=True)
class Player(CanonicalEntity):
    team: Optional[str] = None

    kind = "player"


@dataclass(frozen=True)
class BetTypeEntity(CanonicalEntity):
    """A bet-type market (stat type for props, e.g. "Pts", "Reb", "3pt")."""
    description: str = ""

    kind = "betType"


Entity = Union[Team, Player, BetTypeEntity]

ENTITY_CLASSES: dict[str, type] = {
    "team": Team,
    "player": Player,
    "betType": BetTypeEntity,
}


# ---------------------------------------------------------------------------
# Wagers
# ---------------------------------------------------------------------------

def normalize_leg_result(result: Optional[str]) -> str:
    """
    Map a raw leg result onto LEG_RESULTS.

    >>> normalize_leg_result("win")
    'WIN'
    >>> normalize_leg_result(None)
    'UNKNOWN'
    >>> normalize_leg_result("void")
    'UNKNOWN'
    """
    if not result:
        return "UNKNOWN"
    upper = str(result).strip().upper()
    return upper if upper in LEG_RESULTS else "UNKNOWN"


@dataclass
class WagerLeg:
    """
    One selection within a wager.

    entities:     Raw entity mentions on this leg (player or team names).
    entity_type:  What the mentions are: "player", "team" or "unknown".
    market:       Raw market / stat-type text, e.g. "Pts", "Moneyline".
    result:       The leg's own result, independent of the ticket result.
    is_group_leg: Marks the inner same-game parlay of an SGP+ ticket;
                  its children carry the real selections.
    """
    entities: list[str] = field(default_factory=list)
    entity_type: str = "unknown"
    market: str = ""
    result: Optional[str] = None
    odds: Optional[int] = None
    target: Optional[Union[float, str]] = None
    is_group_leg: bool = False
    children: list["WagerLeg"] = field(default_factory=list)

    @property
    def leg_result(self) -> str:
        return normalize_leg_result(self.result)


@dataclass
class Wager:
    """A settled or pending ticket as supplied by the import pipeline."""
    id: str
    stake: float
    payout: float
    result: str = "pending"
    bet_type: str = "single"
    book: str = ""
    bet_id: str = ""
    placed_at: str = ""
    sport: str = ""
    description: str = ""
    legs: list[WagerLeg] = field(default_factory=list)

    @property
    def is_multi_leg(self) -> bool:
        return self.bet_type in MULTI_LEG_BET_TYPES

    def iter_legs(self):
        """
        Yield (leg_index, leg) over the countable legs.

        Group legs are replaced by their children; a group leg without
        children is yielded itself. Indices follow the flattened order.
        """
        index = 0
        for leg in self.legs:
            if leg.is_group_leg and leg.children:
                for child in leg.children:
                    yield index, child
                    index += 1
            else:
                yield index, leg
                index += 1


# ---------------------------------------------------------------------------
# Review queue
# ---------------------------------------------------------------------------

UNRESOLVED_ENTITY_TYPES: tuple[str, ...] = ("team", "player", "betType", "unknown")


@dataclass(frozen=True)
class UnresolvedItem:
    """
    A raw mention the resolver could not map with confidence.

    id is generate_item_id(raw_value, bet_id, leg_index): the same mention on
    the same leg of the same ticket always gets the same id.
    Resolution candidates are never stored; they are recomputed at review time.
    """
    id: str
    raw_value: str
    entity_type: str
    encountered_at: str
    book: str
    bet_id: str
    leg_index: Optional[int] = None
    market: Optional[str] = None
    sport: Optional[str] = None
    context: Optional[str] = None
