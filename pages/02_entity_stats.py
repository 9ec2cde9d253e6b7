"""
pages/02_entity_stats.py — Entity Stats Tab

Per-entity performance from an uploaded wager history:
1. Upload wagers JSON (malformed wagers skipped + counted)
2. Summary KPI bar + cumulative profit curve (ticket level)
3. Per-entity table: player / team / bet type, every spelling merged
   under its canonical name via the live registry
4. ROI on straights bar chart for the top entities

Money rule shown in the header: stake / net count toward an entity only
on straight wagers; parlay / SGP legs add to the leg record only.
"""

import json
import sys
from pathlib import Path

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

ROOT = Path(__file__).parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from bettracker.aggregation import compute_overall_stats, compute_profit_over_time
from bettracker.console import (
    GREEN,
    KIND_LABELS,
    PLOTLY_BASE,
    RED,
    get_registry,
    no_data_card,
    section_header,
)
from bettracker.entity_stats import compute_entity_stats, resolved_key_extractor, summarize_entity_stats
from bettracker.records import decode_wagers
from bettracker.resolver import UNRESOLVED_BUCKET

SORT_OPTIONS = {
    "Tickets": "tickets",
    "Net (straights)": "net_straights",
    "ROI (straights)": "roi_on_straights",
    "Leg win rate": "leg_win_rate",
    "Legs": "legs",
}

registry = get_registry()


# ---------------------------------------------------------------------------
# Chart builders
# ---------------------------------------------------------------------------

def _build_profit_curve(points: list[dict]):
    """Cumulative net by ticket, placed_at order."""
    if len(points) < 2:
        return None
    profits = [p["profit"] for p in points]
    final_color = GREEN if profits[-1] >= 0 else RED

    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=list(range(1, len(points) + 1)), y=profits,
        mode="lines+markers",
        line=dict(color=final_color, width=2),
        marker=dict(size=4, color=final_color),
        fill="tozeroy",
        fillcolor="rgba(34,197,94,0.08)" if final_color == GREEN else "rgba(239,68,68,0.08)",
        customdata=[p["date"] for p in points],
        hovertemplate="#%{x} · %{customdata}<br>Net: %{y:+.2f}<extra></extra>",
    ))
    fig.add_hline(y=0, line_color="#2d3139", line_width=1)

    layout = dict(PLOTLY_BASE)
    layout["title"] = dict(text="Cumulative Net", font=dict(size=12, color="#9ca3af"), x=0)
    layout["height"] = 250
    layout["xaxis"] = dict(**PLOTLY_BASE["xaxis"], title="Ticket #")
    layout["showlegend"] = False
    fig.update_layout(**layout)
    return fig


def _build_roi_bars(rows: list[dict]):
    """ROI on straights, entities with straight stake only."""
    rows = [r for r in rows if r["stake_straights"] > 0]
    if not rows:
        return None
    names = [r["name"] for r in rows]
    rois = [round(r["roi_on_straights"], 1) for r in rows]

    fig = go.Figure()
    fig.add_trace(go.Bar(
        x=names, y=rois,
        marker_color=[GREEN if r >= 0 else RED for r in rois], opacity=0.8,
        text=[f"{r:+.1f}%" for r in rois],
        textposition="outside",
        textfont=dict(size=10, color="#9ca3af"),
        hovertemplate="%{x}<br>ROI: %{y:+.1f}%<extra></extra>",
    ))
    fig.add_hline(y=0, line_color="#2d3139", line_width=1)

    layout = dict(PLOTLY_BASE)
    layout["title"] = dict(text="ROI % on Straights", font=dict(size=12, color="#9ca3af"), x=0)
    layout["height"] = 260
    layout["yaxis"] = dict(**PLOTLY_BASE["yaxis"], ticksuffix="%")
    layout["showlegend"] = False
    layout["bargap"] = 0.3
    fig.update_layout(**layout)
    return fig


# ---------------------------------------------------------------------------
# Load data
# ---------------------------------------------------------------------------
section_header("Wager History", "JSON list of wagers")
upload = st.file_uploader("Wagers JSON", type=["json"], label_visibility="collapsed")

if upload is None:
    no_data_card("Upload a wager history to see per-entity stats.")
    st.stop()

try:
    raw = json.loads(upload.getvalue().decode("utf-8"))
except (UnicodeDecodeError, json.JSONDecodeError) as exc:
    st.error(f"Not a JSON file: {exc}")
    st.stop()

wagers, rejected = decode_wagers(raw)
if rejected:
    st.warning(f"{rejected} malformed wager(s) skipped")
if not wagers:
    no_data_card("No valid wagers in this file.")
    st.stop()

# ---------------------------------------------------------------------------
# ① Summary KPI bar
# ---------------------------------------------------------------------------
overall = compute_overall_stats(wagers)
section_header("Performance Summary", f"{overall.total_bets} tickets")

k1, k2, k3, k4, k5 = st.columns(5)
with k1:
    st.metric("Tickets", overall.total_bets)
with k2:
    st.metric("Record", f"{overall.wins}W / {overall.losses}L / {overall.pushes}P")
with k3:
    st.metric("Win Rate", f"{overall.win_rate:.1f}%")
with k4:
    st.metric("Net", f"{overall.net_profit:+.2f}")
with k5:
    st.metric("ROI", f"{overall.roi:+.1f}%")

curve = _build_profit_curve(compute_profit_over_time(wagers))
if curve:
    st.plotly_chart(curve, use_container_width=True, config={"displayModeBar": False})

st.markdown("---")

# ---------------------------------------------------------------------------
# ② Per-entity table
# ---------------------------------------------------------------------------
section_header(
    "By Entity",
    "Stake / net from straight wagers only · multi-leg tickets add to the leg record",
)

c1, c2, c3, c4 = st.columns([1, 1, 1, 1])
with c1:
    kind = st.selectbox("Entity", ["player", "team", "betType"], format_func=lambda k: KIND_LABELS[k])
with c2:
    sort_label = st.selectbox("Sort by", list(SORT_OPTIONS))
with c3:
    limit = st.number_input("Show top", min_value=5, max_value=500, value=25, step=5)
with c4:
    show_unresolved = st.toggle("Unresolved bucket", value=False)

extractor = resolved_key_extractor(registry, kind, UNRESOLVED_BUCKET if show_unresolved else None)
stats = compute_entity_stats(wagers, extractor)
rows = summarize_entity_stats(stats, sort_by=SORT_OPTIONS[sort_label], limit=int(limit))

if not rows:
    no_data_card(f"No {KIND_LABELS[kind].lower()} mentions resolved in this file.")
    st.stop()

table = pd.DataFrame([{
    "Name": r["name"],
    "Sport": r["sport"] or "—",
    "Tickets": r["tickets"],
    "Straights": r["straights"],
    "Multi-leg": r["multi_legs"],
    "Stake": r["stake_straights"],
    "Net": r["net_straights"],
    "ROI %": r["roi_on_straights"],
    "Legs": r["legs"],
    "W-L-P": f"{r['leg_wins']}-{r['leg_losses']}-{r['leg_pushes']}",
    "Leg Win %": r["leg_win_rate"] * 100,
} for r in rows])

st.dataframe(
    table,
    use_container_width=True,
    hide_index=True,
    column_config={
        "Stake": st.column_config.NumberColumn("Stake", format="%.2f"),
        "Net": st.column_config.NumberColumn("Net", format="%+.2f"),
        "ROI %": st.column_config.NumberColumn("ROI %", format="%+.1f"),
        "Leg Win %": st.column_config.NumberColumn("Leg Win %", format="%.1f"),
    },
)

roi_fig = _build_roi_bars(rows)
if roi_fig:
    st.plotly_chart(roi_fig, use_container_width=True, config={"displayModeBar": False})
