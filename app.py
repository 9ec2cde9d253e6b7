"""
app.py — BetTracker Review Console Entry Point

Multi-page navigation via st.navigation() (Streamlit 1.36+).
Registry and unresolved queue come from bettracker.console
(st.cache_resource), shared by every page.

Design principles:
- Dark terminal aesthetic: #0e1117 bg, amber accent (#f59e0b)
- st.html() for custom cards (not st.markdown — style tags sandboxed)
- Registry is the only writer; pages call bettracker.review / registry
  mutations and re-render

Run: streamlit run app.py
"""

import logging
import sys
from pathlib import Path

import streamlit as st

# ---------------------------------------------------------------------------
# Path setup: allow 'from bettracker.xxx import' regardless of cwd
# ---------------------------------------------------------------------------
ROOT = Path(__file__).parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from bettracker.console import get_queue, get_registry

# ---------------------------------------------------------------------------
# Logging setup: write to logs/error.log
# ---------------------------------------------------------------------------
LOG_DIR = ROOT / "logs"
LOG_DIR.mkdir(exist_ok=True)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    handlers=[
        logging.FileHandler(LOG_DIR / "error.log"),
        logging.StreamHandler(),
    ],
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Page config: must be first Streamlit call
# ---------------------------------------------------------------------------
st.set_page_config(
    page_title="BetTracker",
    page_icon="📋",
    layout="wide",
    initial_sidebar_state="expanded",
    menu_items={
        "Get Help": None,
        "Report a bug": None,
        "About": "BetTracker — canonical entities & per-entity stats",
    },
)

# ---------------------------------------------------------------------------
# Global CSS injection: minimal
# ---------------------------------------------------------------------------
st.markdown(
    """
    <style>
    [data-testid="stSidebar"] {
        background-color: #13161d;
    }
    [data-testid="stSidebar"] .stMarkdown p {
        color: #9ca3af;
        font-size: 0.75rem;
        letter-spacing: 0.05em;
    }
    .block-container {
        padding-top: 1.5rem;
        padding-bottom: 2rem;
    }
    [data-testid="stMetricValue"] {
        font-size: 1.6rem !important;
        font-weight: 700 !important;
    }
    footer { visibility: hidden; }
    thead tr th {
        background-color: #1a1d23 !important;
        color: #f59e0b !important;
        font-size: 0.75rem !important;
        letter-spacing: 0.08em !important;
        text-transform: uppercase !important;
    }
    </style>
    """,
    unsafe_allow_html=True,
)

# ---------------------------------------------------------------------------
# Sidebar: registry + queue status
# ---------------------------------------------------------------------------
with st.sidebar:
    st.html(
        """
        <div style="
            padding: 12px 0 8px 0;
            border-bottom: 1px solid #2d3139;
            margin-bottom: 12px;
        ">
            <span style="
                font-size: 1.1rem;
                font-weight: 700;
                color: #f59e0b;
                letter-spacing: 0.03em;
            ">📋 BETTRACKER</span>
            <span style="
                font-size: 0.65rem;
                color: #6b7280;
                margin-left: 6px;
                letter-spacing: 0.1em;
                vertical-align: middle;
            ">REVIEW</span>
        </div>
        """
    )

    try:
        _registry = get_registry()
        _queue = get_queue()
        _counts = {
            kind: sum(1 for e in _registry.snapshot(kind) if not e.disabled)
            for kind in ("team", "player", "betType")
        }
        _pending = _queue.count()
        _dot = "#f59e0b" if _pending else "#22c55e"
        st.html(
            f"""
            <div style="
                background: #1a1d23;
                border: 1px solid #2d3139;
                border-radius: 6px;
                padding: 10px 12px;
                margin-bottom: 12px;
            ">
                <div style="display:flex; align-items:center; gap:6px; margin-bottom:6px;">
                    <div style="
                        width:8px; height:8px; border-radius:50%;
                        background:{_dot};
                        box-shadow: 0 0 6px {_dot};
                    "></div>
                    <span style="
                        font-size:0.65rem; font-weight:600;
                        color:{_dot}; letter-spacing:0.1em;
                    ">{_pending} UNRESOLVED</span>
                </div>
                <div style="font-size:0.65rem; color:#6b7280; line-height:1.6;">
                    <div>Teams: {_counts['team']}</div>
                    <div>Players: {_counts['player']}</div>
                    <div>Bet types: {_counts['betType']}</div>
                    <div>Registry v{_registry.version}</div>
                </div>
            </div>
            """
        )
    except Exception as exc:  # noqa: BLE001
        logger.error("Sidebar status failed: %s", exc)
        st.error(f"Storage unavailable: {exc}")

# ---------------------------------------------------------------------------
# Multi-page navigation: programmatic (st.navigation, Streamlit 1.36+)
# ---------------------------------------------------------------------------
pages = [
    st.Page("pages/01_unresolved_queue.py", title="Unresolved Queue", icon="🧩", default=True),
    st.Page("pages/02_entity_stats.py",     title="Entity Stats",     icon="📊"),
    st.Page("pages/03_registry.py",         title="Registry",         icon="🗂"),
]

pg = st.navigation(pages)
pg.run()
