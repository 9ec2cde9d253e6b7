"""
tests/test_resolver.py — Resolver tests

Coverage:
  - resolve(): canonical / alias / abbreviation hits, normalization,
    unresolved keeps trimmed raw, empty input
  - ambiguity: collisions expanded to full candidate entities
  - sport-scoped player and bet type lookup, bare-key fallback
  - same canonical name in different letter case: one candidate per name
  - team abbreviation + nickname heuristic
  - resolve is a pure read (version unchanged)
  - aggregation_key(), is_resolved(), per-kind helpers, infer_sport()
"""

import pytest

from bettracker.models import BetTypeEntity, Player, Team
from bettracker.registry import CanonicalRegistry
from bettracker.resolver import (
    UNRESOLVED_BUCKET,
    ResolveContext,
    aggregation_key,
    infer_sport,
    is_resolved,
    resolve,
    resolve_bet_type,
    resolve_player,
    resolve_team,
)


@pytest.fixture(scope="module")
def registry() -> CanonicalRegistry:
    return CanonicalRegistry()


def _smiths() -> CanonicalRegistry:
    return CanonicalRegistry(seeds={"player": (
        Player("Mike Smith", "NBA", ("Mike",)),
        Player("Mike Smith", "NFL", ("Mike",)),
        Player("Mike Jones", "NFL", ("Mike",)),
    )})


# ---------------------------------------------------------------------------
# Exact matches
# ---------------------------------------------------------------------------

class TestExact:

    def test_canonical(self, registry):
        result = resolve(registry, "team", "Phoenix Suns")
        assert result.status == "resolved"
        assert result.canonical == "Phoenix Suns"
        assert result.match == "canonical"

    def test_alias(self, registry):
        result = resolve(registry, "team", "Suns")
        assert result.entity.canonical == "Phoenix Suns"
        assert result.match == "alias"

    def test_abbreviation(self, registry):
        result = resolve(registry, "team", "PHX")
        assert result.entity.id == "NBA:PHX"
        assert result.match == "abbreviation"

    def test_normalized_input(self, registry):
        assert resolve(registry, "player", "  d’angelo   RUSSELL ").canonical == "D'Angelo Russell"

    def test_bet_type(self, registry):
        assert resolve(registry, "betType", "Made Threes").canonical == "3pt"

    def test_unresolved_keeps_trimmed_raw(self, registry):
        result = resolve(registry, "player", "  Victor   Wembanyama ")
        assert result.status == "unresolved"
        assert result.raw == "Victor   Wembanyama"
        assert result.canonical == "Victor   Wembanyama"
        assert result.entity is None
        assert result.candidates == ()

    @pytest.mark.parametrize("raw", ["", "   ", None])
    def test_empty_input(self, registry, raw):
        result = resolve(registry, "team", raw)
        assert result.status == "unresolved"
        assert result.raw == ""

    def test_unknown_kind(self, registry):
        with pytest.raises(ValueError):
            resolve(registry, "coach", "x")


# ---------------------------------------------------------------------------
# Ambiguity
# ---------------------------------------------------------------------------

class TestAmbiguous:

    def test_cross_sport_abbreviation(self, registry):
        result = resolve(registry, "team", "ATL")
        assert result.status == "ambiguous"
        assert result.entity is None
        assert {(c.canonical, c.sport) for c in result.candidates} == {
            ("Atlanta Hawks", "NBA"), ("Atlanta Falcons", "NFL"),
        }

    def test_longer_spelling_disambiguates(self, registry):
        assert resolve(registry, "team", "ATL Hawks").canonical == "Atlanta Hawks"

    def test_candidates_prefer_context_sport(self):
        result = resolve(_smiths(), "player", "Mike", ResolveContext(sport="NFL"))
        assert result.status == "ambiguous"
        assert [(c.canonical, c.sport) for c in result.candidates] == [
            ("Mike Jones", "NFL"), ("Mike Smith", "NFL"),
        ]

    def test_not_resolved_helpers(self, registry):
        assert not is_resolved(registry, "team", "CHI")
        assert aggregation_key(registry, "team", "CHI") == UNRESOLVED_BUCKET


# ---------------------------------------------------------------------------
# Player sport scoping
# ---------------------------------------------------------------------------

class TestPlayerScope:

    def test_sport_scoped_key_wins(self):
        result = resolve(_smiths(), "player", "Mike Smith", ResolveContext(sport="NFL"))
        assert (result.entity.canonical, result.entity.sport) == ("Mike Smith", "NFL")

    def test_bare_key_without_context(self):
        result = resolve(_smiths(), "player", "Mike Smith")
        assert result.entity.sport == "NBA"

    def test_scoped_miss_falls_back_to_bare(self):
        result = resolve(_smiths(), "player", "Mike Smith", ResolveContext(sport="MLB"))
        assert result.status == "resolved"
        assert result.entity.sport == "NBA"

    def test_resolve_player_helper(self):
        assert resolve_player(_smiths(), "mike smith", sport="NFL").entity.sport == "NFL"


# ---------------------------------------------------------------------------
# Bet type sport scoping
# ---------------------------------------------------------------------------

def _points() -> CanonicalRegistry:
    return CanonicalRegistry(seeds={"betType": (
        BetTypeEntity("Pts", "NBA", ("Points",)),
        BetTypeEntity("Points", "NFL"),
    )})


class TestBetTypeScope:

    def test_context_sport_picks_its_own_bet_type(self):
        assert resolve_bet_type(_points(), "Points", sport="NFL").entity.sport == "NFL"
        nba = resolve_bet_type(_points(), "Points", sport="NBA")
        assert (nba.canonical, nba.entity.sport) == ("Pts", "NBA")

    def test_shared_spelling_without_sport_is_ambiguous(self):
        result = resolve_bet_type(_points(), "Points")
        assert result.status == "ambiguous"
        assert {(c.canonical, c.sport) for c in result.candidates} == {("Pts", "NBA"), ("Points", "NFL")}

    def test_other_sport_bet_type_found_through_bare_key(self, registry):
        result = resolve_bet_type(registry, "ML", sport="NBA")
        assert (result.canonical, result.entity.sport) == ("Moneyline", "Other")


# ---------------------------------------------------------------------------
# Same name, different letter case
# ---------------------------------------------------------------------------

class TestCaseVariantNames:

    def _registry(self) -> CanonicalRegistry:
        return CanonicalRegistry(seeds={"team": (
            Team("Phoenix Suns", "NBA", ("Suns",), abbreviations=("PHX",)),
            Team("PHOENIX SUNS", "WNBA", ("Suns",), abbreviations=("PHO",)),
            Team("Phoenix Mercury", "WNBA", ("Suns",), abbreviations=("PHM",)),
        )})

    def test_candidates_are_distinct_names(self):
        result = resolve(self._registry(), "team", "Suns")
        assert result.status == "ambiguous"
        assert [(c.canonical, c.sport) for c in result.candidates] == [
            ("Phoenix Mercury", "WNBA"), ("Phoenix Suns", "NBA"),
        ]

    def test_case_variant_alone_resolves_to_first(self):
        registry = CanonicalRegistry(seeds={"team": (
            Team("PHOENIX SUNS", "WNBA", ("Suns",), abbreviations=("PHO",)),
            Team("Phoenix Suns", "NBA", ("Suns",), abbreviations=("PHX",)),
        )})
        result = resolve(registry, "team", "Suns")
        assert result.status == "resolved"
        assert result.entity.sport == "NBA"


# ---------------------------------------------------------------------------
# Heuristic
# ---------------------------------------------------------------------------

class TestHeuristic:

    def test_nickname_then_abbreviation(self, registry):
        result = resolve(registry, "team", "Suns PHO")
        assert result.status == "resolved"
        assert result.canonical == "Phoenix Suns"
        assert result.match == "heuristic"

    def test_abbreviation_then_nickname(self):
        suns = Team("Phoenix Suns", "NBA", ("Suns",), abbreviations=("PHX", "PHO"))
        registry = CanonicalRegistry(seeds={"team": (suns,)})
        result = resolve(registry, "team", "PHO Suns")
        assert result.match == "heuristic"
        assert result.canonical == "Phoenix Suns"

    def test_requires_alias_overlap(self, registry):
        assert resolve(registry, "team", "PHO Lakers").status == "unresolved"

    def test_requires_abbreviation_token(self, registry):
        assert resolve(registry, "team", "Phoenix Sunz").status == "unresolved"

    def test_skips_disabled_teams(self):
        suns = Team("Phoenix Suns", "NBA", ("Suns",), abbreviations=("PHO",))
        registry = CanonicalRegistry(seeds={"team": (suns,)})
        registry.disable("team", "Phoenix Suns", "NBA")
        assert resolve(registry, "team", "PHO Suns").status == "unresolved"

    def test_not_applied_to_players(self, registry):
        assert resolve(registry, "player", "PHO Suns").status == "unresolved"


# ---------------------------------------------------------------------------
# Purity / helpers
# ---------------------------------------------------------------------------

class TestPurity:

    def test_resolve_does_not_bump_version(self, registry):
        before = registry.version
        for raw in ("Suns", "ATL", "nobody", "Suns PHO"):
            resolve(registry, "team", raw)
        assert registry.version == before


class TestHelpers:

    def test_resolve_team_and_bet_type(self, registry):
        assert resolve_team(registry, "Celtics").canonical == "Boston Celtics"
        assert resolve_bet_type(registry, "Rebounds", sport="NBA").canonical == "Reb"

    def test_aggregation_key(self, registry):
        assert aggregation_key(registry, "team", "Suns") == "Phoenix Suns"
        assert aggregation_key(registry, "team", "Nowhere FC") == "[Unresolved]"
        assert aggregation_key(registry, "team", "Nowhere FC", unresolved_bucket="(other)") == "(other)"


class TestInferSport:

    def test_from_team(self, registry):
        assert infer_sport(registry, team="Chiefs") == "NFL"

    def test_ambiguous_team_falls_through_to_bet_type(self, registry):
        assert infer_sport(registry, team="ATL", bet_type="Passing Yards") == "NFL"

    def test_bet_type_in_several_sports_is_skipped(self):
        registry = CanonicalRegistry(seeds={"betType": (
            BetTypeEntity("Pts", "NBA", ("Points",)),
            BetTypeEntity("Pts", "WNBA"),
        )})
        assert infer_sport(registry, bet_type="Points") is None
        assert infer_sport(registry, bet_type="Points", description="Lakers @ Nuggets, basketball") == "NBA"

    def test_from_description(self, registry):
        assert infer_sport(registry, description="NHL: Oilers @ Flames") == "NHL"

    def test_nothing(self, registry):
        assert infer_sport(registry, team="Nobody", bet_type="Nothing", description="") is None
