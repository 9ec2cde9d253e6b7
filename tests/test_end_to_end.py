"""
tests/test_end_to_end.py — Import → resolve → queue → review → stats

Walks one registry and one queue file through the whole flow, the way the
review console drives it:

  1. a fresh registry resolves "PHX" / "Suns" and misses "Celtics"
  2. importing the same ticket twice queues the miss once
  3. creating the canonical from the queue drains it; the mention resolves
  4. entity stats group every spelling under one key, parlay money excluded
  5. disabling the entity sends its mentions back to unresolved
  6. a second registry on the same store sees every change
"""

import pytest

from bettracker.entity_stats import compute_entity_stats, resolved_key_extractor
from bettracker.models import Team, Wager, WagerLeg
from bettracker.records import decode_wagers
from bettracker.registry import CanonicalRegistry
from bettracker.resolver import resolve
from bettracker.review import create_canonical
from bettracker.store import SqliteStore
from bettracker.unresolved_queue import UnresolvedQueue, collect_unresolved_items, group_items

SUNS = Team("Phoenix Suns", "NBA", ("Suns",), abbreviations=("PHX",))


@pytest.fixture()
def db(tmp_path) -> str:
    return str(tmp_path / "e2e.db")


@pytest.fixture()
def registry(db) -> CanonicalRegistry:
    return CanonicalRegistry(store=SqliteStore(db), seeds={"team": (SUNS,)})


def _ticket(team: str, wager_id: str = "w1") -> Wager:
    return Wager(
        id=wager_id, stake=10, payout=25, result="win", bet_type="single",
        book="DraftKings", bet_id=f"DK-{wager_id}", sport="NBA",
        legs=[WagerLeg(entities=[team], entity_type="team", market="Moneyline", result="WIN")],
    )


class TestSunsScenario:

    def test_seed_resolution(self, registry):
        assert resolve(registry, "team", "PHX").canonical == "Phoenix Suns"
        assert resolve(registry, "team", "Suns").canonical == "Phoenix Suns"
        assert resolve(registry, "team", "Celtics").status == "unresolved"

    def test_miss_queued_once(self, registry, db):
        queue = UnresolvedQueue(db)
        items = collect_unresolved_items(registry, [_ticket("Celtics")])
        assert len(items) == 1
        assert items[0].entity_type == "team"
        assert queue.enqueue(items) == 1
        assert queue.enqueue(collect_unresolved_items(registry, [_ticket("Celtics")])) == 0
        assert queue.count() == 1

    def test_full_flow(self, registry, db):
        queue = UnresolvedQueue(db)
        tickets = [
            _ticket("Celtics", "1"),
            _ticket("celtics", "2"),
            _ticket("BOS", "3"),
            Wager(id="4", stake=5, payout=0, result="loss", bet_type="parlay", bet_id="DK-4", sport="NBA",
                  legs=[WagerLeg(entities=["Celtics"], entity_type="team", result="WIN"),
                        WagerLeg(entities=["Suns"], entity_type="team", result="LOSS")]),
        ]
        queue.enqueue(collect_unresolved_items(registry, tickets))
        groups = group_items(queue.list(entity_type="team"))
        celtics = next(g for g in groups if g.key == "celtics")
        assert celtics.count == 3

        celtics_team = Team("Boston Celtics", "NBA", ("BOS",), abbreviations=("BOS",))
        outcome = create_canonical(registry, queue, celtics.item_ids, celtics_team, raw_value=celtics.raw_value)
        assert outcome.ok and outcome.removed == 3
        assert [i.raw_value for i in queue.list()] == ["BOS"]
        assert resolve(registry, "team", "BOS").canonical == "Boston Celtics"

        stats = compute_entity_stats(tickets, resolved_key_extractor(registry, "team"))
        boston = stats["NBA::Boston Celtics"]
        assert (boston.tickets, boston.straights, boston.multi_legs) == (4, 3, 1)
        assert boston.stake_straights == 30
        assert boston.net_straights == 45
        assert boston.roi_on_straights == pytest.approx(150.0)
        assert (boston.leg_wins, boston.leg_losses) == (4, 0)
        suns = stats["NBA::Phoenix Suns"]
        assert (suns.stake_straights, suns.leg_losses) == (0, 1)

        registry.disable("team", "Boston Celtics", "NBA")
        for spelling in ("Boston Celtics", "Celtics", "BOS"):
            assert resolve(registry, "team", spelling).status == "unresolved"

        reopened = CanonicalRegistry(store=SqliteStore(db), seeds={"team": (SUNS,)})
        assert reopened.get("team", "Boston Celtics", "NBA").disabled
        assert UnresolvedQueue(db).count() == 1

    def test_uploaded_json_flow(self, registry):
        raw = [
            {"id": "a", "stake": 10, "payout": 25, "result": "win", "betType": "single", "sport": "NBA",
             "legs": [{"entities": ["PHX"], "entityType": "team", "result": "win"}]},
            {"id": "b", "stake": "ten", "payout": 0},
        ]
        wagers, rejected = decode_wagers(raw)
        assert rejected == 1
        stats = compute_entity_stats(wagers, resolved_key_extractor(registry, "team"))
        assert stats["NBA::Phoenix Suns"].net_straights == 15
