"""
pages/03_registry.py — Registry Tab

Canonical entity management per kind (team / player / bet type):
- Browse with sport + text filter; disabled entities listed with status
- Add alias, disable / enable, remove
- Export the snapshot as JSON; import a JSON snapshot (replaces the kind)
- Reset a kind to the bundled seed data

Every change republishes the lookup maps immediately; a failed save keeps
the change for this session and says so.
"""

import json
import sys
from pathlib import Path

import pandas as pd
import streamlit as st

ROOT = Path(__file__).parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from bettracker.console import KIND_LABELS, get_registry, no_data_card, report_outcome, section_header
from bettracker.lookup_key import normalize
from bettracker.records import decode_snapshot, encode_entity

registry = get_registry()

kind = st.radio("Kind", ["team", "player", "betType"], horizontal=True,
                format_func=lambda k: KIND_LABELS[k])
snapshot = registry.snapshot(kind)
maps = registry.maps(kind)

section_header(
    f"{KIND_LABELS[kind]} Registry",
    f"{len(snapshot)} entities · {sum(1 for e in snapshot if e.disabled)} disabled · "
    f"{len(maps.collisions)} shared spellings",
)

# ---------------------------------------------------------------------------
# ① Browse
# ---------------------------------------------------------------------------
f1, f2 = st.columns([1, 3])
with f1:
    sport_filter = st.selectbox("Sport", ["All"] + registry.sports(kind))
with f2:
    text_filter = normalize(st.text_input("Filter", placeholder="name, alias or abbreviation"))

visible = [
    e for e in snapshot
    if (sport_filter == "All" or e.sport == sport_filter)
    and (not text_filter or any(text_filter in normalize(s) for s in e.spellings()))
]

if not visible:
    no_data_card("No entities match.")
else:
    rows = []
    for e in visible:
        row = {
            "Canonical": e.canonical,
            "Sport": e.sport,
            "Aliases": ", ".join(e.aliases),
            "Status": "disabled" if e.disabled else "active",
        }
        if kind == "team":
            row["Abbr"] = ", ".join(e.abbreviations)
            row["Id"] = e.id
        elif kind == "player":
            row["Team"] = e.team or ""
        else:
            row["Description"] = e.description
        rows.append(row)
    st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)

if maps.collisions:
    with st.expander(f"Shared spellings ({len(maps.collisions)}) — resolve as ambiguous"):
        for key in sorted(maps.collisions):
            st.markdown(f"`{key}` → {' / '.join(maps.candidates_for(key))}")

st.markdown("---")

# ---------------------------------------------------------------------------
# ② Edit one entity
# ---------------------------------------------------------------------------
if visible:
    section_header("Edit", "Changes apply to resolution immediately")
    idx = st.selectbox("Entity", range(len(visible)),
                       format_func=lambda i: f"{visible[i].canonical} ({visible[i].sport})")
    entity = visible[idx]

    a1, a2 = st.columns([3, 1])
    with a1:
        new_alias = st.text_input("New alias")
    with a2:
        st.write("")
        if st.button("Add alias", use_container_width=True):
            report_outcome(registry.add_alias(kind, entity.canonical, entity.sport, new_alias),
                           f"'{new_alias.strip()}' → {entity.canonical}")

    b1, b2, _ = st.columns([1, 1, 2])
    with b1:
        if entity.disabled:
            if st.button("Enable", use_container_width=True):
                report_outcome(registry.enable(kind, entity.canonical, entity.sport), "Enabled")
        elif st.button("Disable", use_container_width=True):
            report_outcome(registry.disable(kind, entity.canonical, entity.sport), "Disabled")
    with b2:
        if st.button("Remove", use_container_width=True, type="secondary"):
            report_outcome(registry.remove(kind, entity.canonical, entity.sport), f"Removed {entity.canonical}")

    st.markdown("---")

# ---------------------------------------------------------------------------
# ③ Import / export / reset
# ---------------------------------------------------------------------------
section_header("Snapshot", "JSON export / import replaces the whole kind")

st.download_button(
    "Export JSON",
    data=json.dumps([encode_entity(e) for e in snapshot], indent=2, ensure_ascii=False),
    file_name=f"registry_{kind}.json",
    mime="application/json",
)

upload = st.file_uploader("Import JSON snapshot", type=["json"], key=f"import_{kind}")
if upload is not None and st.button("Replace snapshot", type="primary"):
    try:
        raw = json.loads(upload.getvalue().decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        st.error(f"Not a JSON file: {exc}")
    else:
        if not isinstance(raw, list):
            st.error("Expected a JSON list of entities.")
        else:
            entities, rejected = decode_snapshot(kind, raw)
            if not entities:
                st.error(f"No valid {KIND_LABELS[kind].lower()} records ({rejected} rejected).")
            else:
                report_outcome(registry.replace_snapshot(kind, entities),
                               f"{len(entities)} imported" + (f" · {rejected} rejected" if rejected else ""))

with st.expander("Reset to seed data"):
    st.caption(f"Discards every {KIND_LABELS[kind].lower()} edit.")
    if st.button("Reset", key=f"reset_{kind}"):
        report_outcome(registry.reset_to_seed(kind), "Reset to seed")
