"""
bettracker/resolver.py — Resolver
==================================
Answers "which canonical entity does this raw text mean?" against the
registry's current published maps. Pure read: never touches the registry,
the store or the queue.

Outcomes (Resolution.status):
  "resolved"   — exactly one canonical owns the key
  "ambiguous"  — the key is claimed by 2+ distinct canonicals; every
                 candidate is returned as a full entity
  "unresolved" — no key and no heuristic hit; raw text kept (trimmed)

Lookup order:
  1. players and bet types with context.sport: "{sport}::{key}"
  2. bare key
  3. teams only: abbreviation + nickname heuristic ("PHO Suns", "Suns PHO")

The heuristic is a fallback for a three-letter code glued to a nickname,
not a fuzzy matcher. First active team in snapshot order wins.

Also here: aggregation_key() (resolved canonical or a bucket name) and
infer_sport() (team → bet type → description keywords).

DO NOT add store, queue or Streamlit imports to this file.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from bettracker.lookup_key import normalize, scoped_key
from bettracker.lookup_maps import SCOPED_KINDS
from bettracker.models import Team, check_kind

logger = logging.getLogger(__name__)

UNRESOLVED_BUCKET = "[Unresolved]"

# Checked in order; first keyword hit wins. "football" maps to NFL before Soccer.
_SPORT_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("NBA", ("nba", "basketball")),
    ("NFL", ("nfl", "football")),
    ("MLB", ("mlb", "baseball")),
    ("NHL", ("nhl", "hockey")),
    ("NCAAB", ("ncaab", "college basketball", "march madness")),
    ("NCAAF", ("ncaaf", "college football")),
    ("UFC", ("ufc", "mma", "mixed martial arts")),
    ("Soccer", ("soccer", "premier league", "champions league", "mls")),
    ("Tennis", ("tennis", "wimbledon", "us open", "french open", "australian open")),
)


@dataclass(frozen=True)
class ResolveContext:
    """Optional hints. sport enables sport-scoped player and bet type lookup."""
    sport: Optional[str] = None
    team: Optional[str] = None


@dataclass(frozen=True)
class Resolution:
    """
    status:     "resolved" | "ambiguous" | "unresolved"
    raw:        Input text, trimmed.
    entity:     The owning entity when resolved; None otherwise.
    candidates: Every claiming entity when ambiguous; empty otherwise.
    match:      How a resolved entity matched: "canonical", "alias",
                "abbreviation" or "heuristic".
    """
    status: str
    raw: str
    entity: object = None
    candidates: tuple = ()
    match: Optional[str] = None

    @property
    def canonical(self) -> str:
        """Canonical name when resolved, else the trimmed raw text."""
        return self.entity.canonical if self.entity is not None else self.raw

    @property
    def is_resolved(self) -> bool:
        return self.status == "resolved"


# ---------------------------------------------------------------------------
# Core resolve
# ---------------------------------------------------------------------------

def resolve(registry, kind: str, raw_value: Optional[str], context: Optional[ResolveContext] = None) -> Resolution:
    """
    Resolve raw text to a canonical entity of one kind.

    Args:
        registry:  CanonicalRegistry (only its maps/snapshot are read).
        kind:      "team", "player" or "betType".
        raw_value: Text as it appeared on the ticket.
        context:   ResolveContext; sport scopes player and bet type lookup.

    Returns:
        Resolution. Ambiguous and unresolved are normal outcomes, not errors.
    """
    check_kind(kind)
    raw = (raw_value or "").strip()
    key = normalize(raw)
    if not key:
        return Resolution("unresolved", raw)

    maps = registry.maps(kind)
    sport = context.sport if context else None

    candidate_keys = []
    if kind in SCOPED_KINDS and sport:
        candidate_keys.append(scoped_key(sport, key))
    candidate_keys.append(key)

    for map_key in candidate_keys:
        entity = maps.lookup(map_key)
        if entity is None:
            continue
        names = maps.candidates_for(map_key)
        if len(names) > 1:
            candidates = tuple(_expand_candidate(maps, name, sport) for name in names)
            return Resolution("ambiguous", raw, candidates=candidates)
        return Resolution("resolved", raw, entity=entity, match=_match_type(entity, key))

    if kind == "team":
        team = _abbreviation_heuristic(registry.snapshot("team"), key)
        if team is not None:
            return Resolution("resolved", raw, entity=team, match="heuristic")

    return Resolution("unresolved", raw)


def _expand_candidate(maps, name: str, sport: Optional[str]):
    entities = maps.by_canonical.get(normalize(name), [])
    if sport:
        for entity in entities:
            if entity.sport == sport:
                return entity
    return entities[0]


def _match_type(entity, key: str) -> str:
    if normalize(entity.canonical) == key:
        return "canonical"
    if isinstance(entity, Team) and key in {normalize(a) for a in entity.abbreviations}:
        return "abbreviation"
    return "alias"


def _abbreviation_heuristic(teams, key: str) -> Optional[Team]:
    """
    "abbr nickname" / "nickname abbr" against each active team's own codes.

    The non-abbreviation tokens are compared to the team's aliases by
    substring in either direction.

    >>> suns = Team("Phoenix Suns", "NBA", ("Suns",), abbreviations=("PHX", "PHO"))
    >>> _abbreviation_heuristic([suns], "pho suns").canonical
    'Phoenix Suns'
    >>> _abbreviation_heuristic([suns], "pho lakers") is None
    True
    """
    for team in teams:
        if team.disabled:
            continue
        for abbr in team.abbreviations:
            code = normalize(abbr)
            if not code:
                continue
            escaped = re.escape(code)
            if not (re.search(rf"^{escaped}\s+", key) or re.search(rf"\s+{escaped}$", key)):
                continue
            for part in key.split(" "):
                if part == code:
                    continue
                for alias in team.aliases:
                    alias_key = normalize(alias)
                    if alias_key and (part in alias_key or alias_key in part):
                        return team
    return None


# ---------------------------------------------------------------------------
# Per-kind helpers
# ---------------------------------------------------------------------------

def resolve_team(registry, raw_value: Optional[str]) -> Resolution:
    return resolve(registry, "team", raw_value)


def resolve_player(registry, raw_value: Optional[str], sport: Optional[str] = None,
                   team: Optional[str] = None) -> Resolution:
    return resolve(registry, "player", raw_value, ResolveContext(sport=sport, team=team))


def resolve_bet_type(registry, raw_value: Optional[str], sport: Optional[str] = None) -> Resolution:
    return resolve(registry, "betType", raw_value, ResolveContext(sport=sport))


def is_resolved(registry, kind: str, raw_value: Optional[str],
                context: Optional[ResolveContext] = None) -> bool:
    return resolve(registry, kind, raw_value, context).is_resolved


def aggregation_key(registry, kind: str, raw_value: Optional[str],
                    context: Optional[ResolveContext] = None,
                    unresolved_bucket: str = UNRESOLVED_BUCKET) -> str:
    """
    Canonical name for grouping, or unresolved_bucket.

    Ambiguous mentions go to the bucket too: grouping them under the first
    claimant would silently mis-attribute money.
    """
    resolution = resolve(registry, kind, raw_value, context)
    return resolution.canonical if resolution.is_resolved else unresolved_bucket


# ---------------------------------------------------------------------------
# Sport inference
# ---------------------------------------------------------------------------

def infer_sport(registry, team: Optional[str] = None, bet_type: Optional[str] = None,
                description: Optional[str] = None) -> Optional[str]:
    """
    Best-effort sport for a ticket missing one.

    Order: resolved team's sport; bet type's sport when that bet type exists
    in exactly one sport; first sport keyword found in description.

    Returns:
        Sport tag, or None when nothing points anywhere.
    """
    if team:
        resolution = resolve(registry, "team", team)
        if resolution.is_resolved:
            return resolution.entity.sport
        sports = {c.sport for c in resolution.candidates}
        if len(sports) == 1:
            return sports.pop()

    if bet_type:
        resolution = resolve(registry, "betType", bet_type)
        if resolution.is_resolved:
            same_name = registry.maps("betType").by_canonical.get(
                normalize(resolution.entity.canonical), [resolution.entity]
            )
            sports = {e.sport for e in same_name}
            if len(sports) == 1:
                return sports.pop()

    if description:
        lowered = normalize(description)
        for sport, keywords in _SPORT_KEYWORDS:
            if any(keyword in lowered for keyword in keywords):
                return sport

    return None
