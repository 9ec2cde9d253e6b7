"""
bettracker/aggregation.py — Ticket-level aggregation
=====================================================
Whole-ticket money math: net, ROI, overall record, per-dimension breakdowns
(by book, sport, bet type, ...) and the cumulative profit curve.

Every ticket is counted once here with its full stake. Per-entity
attribution, where multi-leg money must not be spread across legs, lives in
entity_stats.py.

Rules:
  - net = payout - stake, except pending → 0
  - ROI = net / stake * 100, 0 when stake is 0
  - win rate = wins / (wins + losses) * 100; pushes and pending excluded

DO NOT add registry or Streamlit imports to this file.
"""

from dataclasses import asdict, dataclass
from datetime import datetime

from bettracker.models import MULTI_LEG_BET_TYPES


def is_multi_leg(bet_type: str) -> bool:
    """
    >>> is_multi_leg("sgp_plus")
    True
    >>> is_multi_leg("live")
    False
    """
    return bet_type in MULTI_LEG_BET_TYPES


def get_net(wager) -> float:
    """Ticket profit/loss. Pending tickets have no realized net."""
    if wager.result == "pending":
        return 0.0
    return wager.payout - wager.stake


def calculate_roi(net: float, stake: float) -> float:
    """
    Return on investment as a percentage.

    >>> calculate_roi(15, 10)
    150.0
    >>> calculate_roi(5, 0)
    0.0
    """
    return (net / stake) * 100 if stake > 0 else 0.0


# ---------------------------------------------------------------------------
# Overall
# ---------------------------------------------------------------------------

@dataclass
class OverallStats:
    total_bets: int = 0
    total_wagered: float = 0.0
    net_profit: float = 0.0
    wins: int = 0
    losses: int = 0
    pushes: int = 0
    pending: int = 0
    win_rate: float = 0.0
    roi: float = 0.0


def compute_overall_stats(wagers) -> OverallStats:
    wagers = list(wagers)
    stats = OverallStats(total_bets=len(wagers))
    for wager in wagers:
        stats.total_wagered += wager.stake
        stats.net_profit += get_net(wager)
        if wager.result == "win":
            stats.wins += 1
        elif wager.result == "loss":
            stats.losses += 1
        elif wager.result == "push":
            stats.pushes += 1
        elif wager.result == "pending":
            stats.pending += 1

    decided = stats.wins + stats.losses
    stats.win_rate = (stats.wins / decided) * 100 if decided else 0.0
    stats.roi = calculate_roi(stats.net_profit, stats.total_wagered)
    return stats


# ---------------------------------------------------------------------------
# Per dimension
# ---------------------------------------------------------------------------

@dataclass
class DimensionStats:
    count: int = 0
    stake: float = 0.0
    net: float = 0.0
    wins: int = 0
    losses: int = 0
    pushes: int = 0

    @property
    def roi(self) -> float:
        return calculate_roi(self.net, self.stake)


def compute_stats_by_dimension(wagers, key_fn) -> dict[str, DimensionStats]:
    """
    Group whole tickets by key_fn(wager).

    key_fn may return one key, a list of keys (the ticket counts fully under
    each), or None/"" to skip the ticket.

    Args:
        wagers: Iterable of Wager.
        key_fn: Callable(wager) -> str | list[str] | None.

    Returns:
        key → DimensionStats, in first-seen order.
    """
    result: dict[str, DimensionStats] = {}
    for wager in wagers:
        keys = key_fn(wager)
        if not keys:
            continue
        if isinstance(keys, str):
            keys = [keys]
        net = get_net(wager)
        for key in keys:
            if not key:
                continue
            stats = result.setdefault(key, DimensionStats())
            stats.count += 1
            stats.stake += wager.stake
            stats.net += net
            if wager.result == "win":
                stats.wins += 1
            elif wager.result == "loss":
                stats.losses += 1
            elif wager.result == "push":
                stats.pushes += 1
    return result


def stats_to_rows(dimension_map: dict[str, DimensionStats]) -> list[dict]:
    """Flatten for tables/charts: one dict per key with name and roi added."""
    return [
        {"name": name, **asdict(stats), "roi": stats.roi}
        for name, stats in dimension_map.items()
    ]


# ---------------------------------------------------------------------------
# Profit curve
# ---------------------------------------------------------------------------

def _placed_date(placed_at: str) -> str:
    try:
        return datetime.fromisoformat(placed_at.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        return placed_at[:10]


def compute_profit_over_time(wagers) -> list[dict]:
    """
    Cumulative net, one point per ticket in placed_at order.

    Returns:
        [{"date": "YYYY-MM-DD", "profit": cumulative_net}, ...]
    """
    ordered = sorted(wagers, key=lambda w: w.placed_at or "")
    points = []
    cumulative = 0.0
    for wager in ordered:
        cumulative += get_net(wager)
        points.append({"date": _placed_date(wager.placed_at or ""), "profit": cumulative})
    return points
