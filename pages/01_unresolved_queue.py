"""
pages/01_unresolved_queue.py — Unresolved Queue Tab

Review loop for mentions the registry could not resolve:
1. Import wagers (JSON upload) → unresolved / ambiguous mentions queued
2. Queue grouped by (type, lookup key, sport), most frequent first
3. Per group: map to an existing entity (adds an alias), create a new
   canonical entity, or dismiss
4. Status is re-resolved live, so groups fixed elsewhere show as resolved

Design:
- Every action goes through bettracker.review; queue only shrinks after
  the registry accepted the change
- No narrative — counts + actions only
"""

import json
import sys
from pathlib import Path

import pandas as pd
import streamlit as st

ROOT = Path(__file__).parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from bettracker.console import (
    AMBER,
    GRAY,
    GREEN,
    KIND_LABELS,
    RED,
    get_queue,
    get_registry,
    no_data_card,
    report_outcome,
    section_header,
)
from bettracker.models import BetTypeEntity, Player, Team
from bettracker.records import decode_wagers
from bettracker.review import create_canonical, current_status, dismiss, map_to_existing
from bettracker.unresolved_queue import collect_unresolved_items, group_items

STATUS_COLORS = {"resolved": GREEN, "ambiguous": AMBER, "unresolved": RED}
TYPE_OPTIONS = ["All", "team", "player", "betType", "unknown"]

registry = get_registry()
queue = get_queue()


def _split(text: str) -> tuple[str, ...]:
    return tuple(s.strip() for s in text.split(",") if s.strip())


def _entity_label(entity) -> str:
    return f"{entity.canonical} ({entity.sport})"


# ---------------------------------------------------------------------------
# ① Import
# ---------------------------------------------------------------------------
section_header("Import Wagers", "JSON list of wagers — unresolved mentions are queued once per leg")

col_file, col_book = st.columns([3, 1])
with col_file:
    upload = st.file_uploader("Wagers JSON", type=["json"], label_visibility="collapsed")
with col_book:
    book_override = st.text_input("Book override", placeholder="(from wager)")

if upload is not None and st.button("Queue unresolved mentions", type="primary"):
    try:
        raw = json.loads(upload.getvalue().decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        st.error(f"Not a JSON file: {exc}")
    else:
        wagers, rejected = decode_wagers(raw)
        items = collect_unresolved_items(registry, wagers, book=book_override.strip() or None)
        try:
            added = queue.enqueue(items)
        except Exception as exc:  # noqa: BLE001
            st.error(f"Queue write failed: {exc}")
        else:
            st.success(
                f"{len(wagers)} wagers read · {len(items)} unresolved mentions · {added} new in queue"
                + (f" · {rejected} malformed skipped" if rejected else "")
            )

st.markdown("---")

# ---------------------------------------------------------------------------
# ② Queue
# ---------------------------------------------------------------------------
f1, f2, _ = st.columns([1, 1, 2])
with f1:
    type_filter = st.selectbox("Type", TYPE_OPTIONS, format_func=lambda t: KIND_LABELS.get(t, t))
with f2:
    sport_filter = st.selectbox("Sport", ["All"] + registry.sports())

items = queue.list(
    entity_type=None if type_filter == "All" else type_filter,
    sport=None if sport_filter == "All" else sport_filter,
)
groups = group_items(items)

section_header("Unresolved Queue", f"{len(items)} mentions · {len(groups)} distinct spellings")

if not groups:
    no_data_card("Queue is empty.<br>Import wagers above to find unknown names.")
    st.stop()

rows = []
for g in groups:
    rows.append({
        "Type": KIND_LABELS.get(g.entity_type, g.entity_type),
        "Spelling": g.raw_value,
        "Sport": g.sport or "—",
        "Count": g.count,
        "Books": ", ".join(g.books),
        "Markets": ", ".join(g.markets),
        "First seen": g.first_seen[:10],
        "Last seen": g.last_seen[:10],
    })
st.dataframe(
    pd.DataFrame(rows),
    use_container_width=True,
    hide_index=True,
    column_config={
        "Count": st.column_config.NumberColumn("Count", width=60),
        "Spelling": st.column_config.TextColumn("Spelling", width=180),
    },
)

st.markdown("---")

# ---------------------------------------------------------------------------
# ③ Resolve one group
# ---------------------------------------------------------------------------
section_header("Resolve", "Pick a spelling, then map, create or dismiss")

labels = [f"{g.raw_value} · {KIND_LABELS.get(g.entity_type, g.entity_type)} · {g.sport or '—'} ({g.count})"
          for g in groups]
idx = st.selectbox("Spelling", range(len(groups)), format_func=lambda i: labels[i])
group = groups[idx]
sample = queue.get(group.item_ids[0])
status = current_status(registry, sample) if sample else None

if status is not None:
    color = STATUS_COLORS.get(status.status, GRAY)
    detail = ""
    if status.is_resolved:
        detail = f" → {_entity_label(status.entity)} via {status.match}"
    elif status.candidates:
        detail = " → " + " / ".join(_entity_label(c) for c in status.candidates)
    st.html(f"""
    <div style="font-size:0.78rem; color:#9ca3af; margin-bottom:8px;">
        Current status:
        <strong style="color:{color};">{status.status.upper()}</strong>{detail}
    </div>
    """)

kind = group.entity_type
if kind == "unknown":
    kind = st.radio("Treat as", ["player", "team"], horizontal=True,
                    format_func=lambda k: KIND_LABELS[k])

tab_map, tab_create, tab_dismiss = st.tabs(["Map to existing", "Create new", "Dismiss"])

with tab_map:
    targets = [e for e in registry.snapshot(kind) if not e.disabled]
    if group.sport:
        same_sport = [e for e in targets if e.sport == group.sport]
        targets = same_sport or targets
    if not targets:
        st.caption("No active entities of this type.")
    else:
        t_idx = st.selectbox("Target", range(len(targets)), format_func=lambda i: _entity_label(targets[i]))
        if st.button("Add alias + clear", key="map"):
            target = targets[t_idx]
            outcome = map_to_existing(registry, queue, group.item_ids, kind, target.canonical,
                                      target.sport, group.raw_value)
            report_outcome(outcome, f"'{group.raw_value}' → {target.canonical} · {outcome.removed} cleared")

with tab_create:
    with st.form("create_entity"):
        canonical = st.text_input("Canonical name", value=group.raw_value)
        sport = st.text_input("Sport", value=group.sport or "")
        aliases = st.text_input("Aliases (comma separated)")
        extra = ""
        if kind == "team":
            extra = st.text_input("Abbreviations (comma separated)")
        elif kind == "player":
            extra = st.text_input("Team (optional)")
        elif kind == "betType":
            extra = st.text_input("Description (optional)")
        submitted = st.form_submit_button("Create + clear")
    if submitted:
        if kind == "team":
            entity = Team(canonical, sport, _split(aliases), abbreviations=_split(extra))
        elif kind == "player":
            entity = Player(canonical, sport, _split(aliases), team=extra.strip() or None)
        else:
            entity = BetTypeEntity(canonical, sport, _split(aliases), description=extra.strip())
        outcome = create_canonical(registry, queue, group.item_ids, entity, raw_value=group.raw_value)
        report_outcome(outcome, f"Created {canonical} ({sport}) · {outcome.removed} cleared")

with tab_dismiss:
    st.caption(f"Removes {group.count} queued mention(s); the registry is not changed.")
    if st.button("Dismiss", key="dismiss"):
        outcome = dismiss(queue, group.item_ids)
        report_outcome(outcome, f"{outcome.removed} dismissed")
