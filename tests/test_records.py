"""
tests/test_records.py — Decode / validate boundary tests

Coverage:
  - decode_record(): per-kind required fields, type checks, team id
    derivation, alias dedup, never raises on junk
  - decode_snapshot(): drops malformed and duplicate records, counts them
  - encode_entity(): round trip through decode_record
  - decode_wager() / decode_wagers(): wager + leg validation, camelCase input
  - decode_unresolved_item(): queue rows, legacy "stat" type
"""

import logging

import pytest

from bettracker.models import BetTypeEntity, Player, Team
from bettracker.records import (
    decode_record,
    decode_snapshot,
    decode_unresolved_item,
    decode_wager,
    decode_wagers,
    encode_entity,
)


def _team_raw(**overrides) -> dict:
    raw = {
        "canonical": "Phoenix Suns",
        "sport": "NBA",
        "aliases": ["Suns", "PHX Suns"],
        "abbreviations": ["PHX", "PHO"],
    }
    raw.update(overrides)
    return raw


# ---------------------------------------------------------------------------
# decode_record
# ---------------------------------------------------------------------------

class TestDecodeRecord:

    def test_valid_team(self):
        result = decode_record("team", _team_raw())
        assert result.ok
        team = result.value
        assert isinstance(team, Team)
        assert team.aliases == ("Suns", "PHX Suns")
        assert team.abbreviations == ("PHX", "PHO")
        assert team.id == "NBA:PHX"
        assert team.disabled is False

    def test_stored_team_id_kept(self):
        result = decode_record("team", _team_raw(id="NBA:SUNS"))
        assert result.value.id == "NBA:SUNS"

    def test_team_without_abbreviation_gets_slug_id(self):
        result = decode_record("team", _team_raw(canonical="Los Angeles Lakers", abbreviations=[]))
        assert result.value.id == "NBA:LOSANG"

    def test_team_requires_abbreviations_list(self):
        raw = _team_raw()
        del raw["abbreviations"]
        result = decode_record("team", raw)
        assert not result.ok
        assert "abbreviations: missing" in result.errors

    def test_aliases_deduplicated_by_key(self):
        result = decode_record("team", _team_raw(aliases=["Suns", "SUNS", " suns", "", "Phoenix"]))
        assert result.value.aliases == ("Suns", "Phoenix")

    def test_valid_player(self):
        result = decode_record("player", {
            "canonical": "LeBron James", "sport": "NBA", "aliases": ["LeBron"], "team": "Lakers",
        })
        assert result.ok
        assert isinstance(result.value, Player)
        assert result.value.team == "Lakers"

    def test_player_blank_team_becomes_none(self):
        result = decode_record("player", {
            "canonical": "LeBron James", "sport": "NBA", "aliases": [], "team": "  ",
        })
        assert result.value.team is None

    def test_valid_bet_type(self):
        result = decode_record("betType", {
            "canonical": "Pts", "sport": "NBA", "aliases": ["Points"], "description": "Points",
        })
        assert result.ok
        assert isinstance(result.value, BetTypeEntity)
        assert result.value.description == "Points"

    def test_disabled_flag(self):
        result = decode_record("team", _team_raw(disabled=True))
        assert result.value.disabled is True

    @pytest.mark.parametrize("raw", [None, "Phoenix Suns", 42, ["canonical"]])
    def test_non_dict_rejected(self, raw):
        result = decode_record("team", raw)
        assert not result.ok
        assert result.value is None
        assert result.errors

    @pytest.mark.parametrize("field,value,message", [
        ("canonical", "", "canonical: empty"),
        ("canonical", 7, "canonical: expected string, got int"),
        ("sport", None, "sport: expected string, got NoneType"),
        ("aliases", "Suns", "aliases: expected list, got str"),
        ("aliases", ["Suns", 3], "aliases: 1 non-string item(s)"),
        ("disabled", "yes", "disabled: expected bool, got str"),
    ])
    def test_field_type_errors(self, field, value, message):
        result = decode_record("team", _team_raw(**{field: value}))
        assert not result.ok
        assert message in result.errors

    def test_several_errors_reported_together(self):
        result = decode_record("player", {"canonical": 1, "sport": 2})
        assert len(result.errors) == 3

    def test_unknown_kind_raises(self):
        with pytest.raises(ValueError):
            decode_record("coach", _team_raw())


# ---------------------------------------------------------------------------
# decode_snapshot
# ---------------------------------------------------------------------------

class TestDecodeSnapshot:

    def test_drops_malformed_and_logs(self, caplog):
        raws = [_team_raw(), {"canonical": 5}, "junk"]
        with caplog.at_level(logging.WARNING, logger="bettracker.records"):
            entities, rejected = decode_snapshot("team", raws)
        assert [e.canonical for e in entities] == ["Phoenix Suns"]
        assert rejected == 2
        assert len([r for r in caplog.records if "malformed" in r.getMessage()]) == 2

    def test_drops_duplicate_canonical_same_sport(self):
        raws = [_team_raw(), _team_raw(canonical="PHOENIX  suns", aliases=["Other"])]
        entities, rejected = decode_snapshot("team", raws)
        assert len(entities) == 1
        assert entities[0].aliases == ("Suns", "PHX Suns")
        assert rejected == 1

    def test_same_canonical_other_sport_kept(self):
        raws = [
            {"canonical": "Mike Smith", "sport": "NBA", "aliases": []},
            {"canonical": "Mike Smith", "sport": "NFL", "aliases": []},
        ]
        entities, rejected = decode_snapshot("player", raws)
        assert len(entities) == 2
        assert rejected == 0

    def test_empty_list(self):
        assert decode_snapshot("betType", []) == ([], 0)


# ---------------------------------------------------------------------------
# encode_entity
# ---------------------------------------------------------------------------

class TestEncodeEntity:

    def test_team_round_trip(self):
        team = decode_record("team", _team_raw(disabled=True)).value
        encoded = encode_entity(team)
        assert encoded["id"] == "NBA:PHX"
        assert encoded["disabled"] is True
        assert decode_record("team", encoded).value == team

    def test_player_without_team_omits_field(self):
        encoded = encode_entity(Player("LeBron James", "NBA", ("LeBron",)))
        assert "team" not in encoded
        assert "disabled" not in encoded
        assert encoded["aliases"] == ["LeBron"]

    def test_bet_type_description(self):
        encoded = encode_entity(BetTypeEntity("Pts", "NBA", (), description="Points"))
        assert encoded["description"] == "Points"


# ---------------------------------------------------------------------------
# decode_wager
# ---------------------------------------------------------------------------

def _wager_raw(**overrides) -> dict:
    raw = {
        "id": "w1",
        "book": "DraftKings",
        "bet_id": "DK-1",
        "placed_at": "2025-01-05T19:00:00Z",
        "bet_type": "single",
        "sport": "NBA",
        "stake": 10,
        "payout": 25,
        "result": "win",
        "legs": [{"entities": ["LeBron James"], "entity_type": "player", "market": "Pts", "result": "WIN"}],
    }
    raw.update(overrides)
    return raw


class TestDecodeWager:

    def test_valid(self):
        result = decode_wager(_wager_raw())
        assert result.ok
        wager = result.value
        assert wager.stake == 10.0
        assert wager.payout == 25.0
        assert wager.legs[0].entities == ["LeBron James"]
        assert wager.legs[0].leg_result == "WIN"

    def test_camel_case_keys(self):
        raw = _wager_raw()
        raw["betType"] = raw.pop("bet_type")
        raw["betId"] = raw.pop("bet_id")
        raw["legs"] = [{"entities": ["A", "B"], "entityType": "player", "isGroupLeg": True,
                        "children": [{"entities": ["A"], "result": "win"}]}]
        wager = decode_wager(raw).value
        assert wager.bet_id == "DK-1"
        assert wager.legs[0].is_group_leg
        assert wager.legs[0].children[0].leg_result == "WIN"

    def test_defaults(self):
        wager = decode_wager({"id": "w2", "stake": 5, "payout": 0}).value
        assert wager.result == "pending"
        assert wager.bet_type == "single"
        assert wager.bet_id == "w2"
        assert wager.legs == []

    def test_result_case_insensitive(self):
        assert decode_wager(_wager_raw(result="WIN")).value.result == "win"

    @pytest.mark.parametrize("overrides", [
        {"stake": "10"},
        {"stake": True},
        {"payout": None},
        {"result": "void"},
        {"bet_type": "teaser"},
        {"legs": "LeBron"},
        {"legs": [{"entities": "LeBron"}]},
        {"legs": [{"odds": 1.5}]},
    ])
    def test_invalid(self, overrides):
        result = decode_wager(_wager_raw(**overrides))
        assert not result.ok
        assert result.errors

    def test_invalid_child_leg_rejects_wager(self):
        raw = _wager_raw(legs=[{"is_group_leg": True, "children": [{"entities": [1]}]}])
        result = decode_wager(raw)
        assert not result.ok
        assert any(e.startswith("legs[0].children[0]") for e in result.errors)

    def test_blank_mentions_dropped(self):
        raw = _wager_raw(legs=[{"entities": [" LeBron James ", "  "]}])
        assert decode_wager(raw).value.legs[0].entities == ["LeBron James"]


class TestDecodeWagers:

    def test_mixed_batch(self):
        wagers, rejected = decode_wagers([_wager_raw(), {"id": "bad"}, _wager_raw(id="w3")])
        assert [w.id for w in wagers] == ["w1", "w3"]
        assert rejected == 1

    def test_non_list_payload(self):
        assert decode_wagers({"id": "w1"}) == ([], 0)


# ---------------------------------------------------------------------------
# decode_unresolved_item
# ---------------------------------------------------------------------------

class TestDecodeUnresolvedItem:

    def _raw(self, **overrides) -> dict:
        raw = {
            "id": "phx suns::DK-1::0",
            "raw_value": "PHX Suns",
            "entity_type": "team",
            "encountered_at": "2025-01-05T19:00:00+00:00",
            "book": "DraftKings",
            "bet_id": "DK-1",
            "leg_index": 0,
            "market": None,
            "sport": "NBA",
            "context": None,
        }
        raw.update(overrides)
        return raw

    def test_valid_row(self):
        item = decode_unresolved_item(self._raw()).value
        assert item.raw_value == "PHX Suns"
        assert item.leg_index == 0
        assert item.market is None

    def test_legacy_stat_type(self):
        item = decode_unresolved_item(self._raw(entity_type="stat")).value
        assert item.entity_type == "betType"

    def test_camel_case(self):
        raw = {"id": "x::b", "rawValue": "x", "entityType": "player",
               "encounteredAt": "2025-01-01T00:00:00Z", "book": "", "betId": "b"}
        assert decode_unresolved_item(raw).ok

    @pytest.mark.parametrize("overrides", [
        {"entity_type": "coach"},
        {"bet_id": None},
        {"leg_index": "0"},
        {"raw_value": ""},
    ])
    def test_invalid(self, overrides):
        assert not decode_unresolved_item(self._raw(**overrides)).ok
