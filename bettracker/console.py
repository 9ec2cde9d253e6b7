"""
bettracker/console.py — Shared state + UI helpers for the review console

Responsibilities:
  - One CanonicalRegistry and one UnresolvedQueue per process
    (st.cache_resource), so every page sees the same in-memory snapshot
  - Plotly layout + small st.html() cards used by every page

Pages import from here; app.py owns logging and navigation.
DO NOT put resolution or stats logic here — pages call the engine modules.
"""

import logging

import streamlit as st

from bettracker.registry import CanonicalRegistry
from bettracker.store import SqliteStore
from bettracker.unresolved_queue import UnresolvedQueue

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Palette
# ---------------------------------------------------------------------------
AMBER = "#f59e0b"
GREEN = "#22c55e"
RED = "#ef4444"
GRAY = "#6b7280"

PLOTLY_BASE = dict(
    paper_bgcolor="#0e1117",
    plot_bgcolor="#13161d",
    font=dict(color="#d1d5db", size=11, family="monospace"),
    margin=dict(l=50, r=20, t=40, b=50),
    xaxis=dict(gridcolor="#2d3139", linecolor="#2d3139", tickfont=dict(size=10)),
    yaxis=dict(gridcolor="#2d3139", linecolor="#2d3139", tickfont=dict(size=10)),
    hoverlabel=dict(bgcolor="#1a1d23", bordercolor="#2d3139", font_color="#f3f4f6"),
)

KIND_LABELS = {"team": "Team", "player": "Player", "betType": "Bet Type", "unknown": "Unknown"}


# ---------------------------------------------------------------------------
# Shared state
# ---------------------------------------------------------------------------
@st.cache_resource(show_spinner=False)
def get_registry() -> CanonicalRegistry:
    """Registry over the default store (BETTRACKER_DB_PATH or data/bettracker.db)."""
    registry = CanonicalRegistry(store=SqliteStore())
    logger.info("Registry loaded (version %d)", registry.version)
    return registry


@st.cache_resource(show_spinner=False)
def get_queue() -> UnresolvedQueue:
    return UnresolvedQueue()


# ---------------------------------------------------------------------------
# Cards
# ---------------------------------------------------------------------------
def section_header(title: str, subtitle: str = "") -> None:
    sub_html = (
        f'<div style="font-size:0.72rem; color:{GRAY}; margin-top:2px;">{subtitle}</div>'
        if subtitle else ""
    )
    st.html(f"""
    <div style="margin-bottom:12px; margin-top:4px;">
        <span style="
            font-size:0.65rem; font-weight:700; letter-spacing:0.12em;
            color:{AMBER}; text-transform:uppercase;
        ">{title}</span>
        {sub_html}
    </div>
    """)


def no_data_card(msg: str) -> None:
    st.html(f"""
    <div style="
        background:#1a1d23; border:1px solid #2d3139; border-radius:6px;
        padding:24px 20px; text-align:center; color:{GRAY}; font-size:0.82rem;
    ">
        <div style="font-size:1.3rem; margin-bottom:8px;">—</div>
        {msg}
    </div>
    """)


def report_outcome(outcome, success: str) -> None:
    """
    Render a MutationResult / ReviewOutcome.

    A persist_error means the change is live in memory but was not saved;
    that is shown as a warning, not a failure.
    """
    if not outcome.ok:
        st.error(f"Not applied: {outcome.error}")
        return
    st.success(success)
    if outcome.persist_error:
        st.warning(f"Applied for this session only — save failed: {outcome.persist_error}")
