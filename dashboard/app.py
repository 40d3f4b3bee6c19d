"""
JIA Mapping Dashboard (Streamlit)

- Click the map to place an anonymised patient point; it is snapped to the
  nearest town centroid and only the town is stored
- Sidebar shows observed vs expected cases per town
- Exports the town summary report as jia_town_summary.csv

Run:
    streamlit run dashboard/app.py
"""

from __future__ import annotations

import warnings
from typing import Any, Dict, List, Optional

import folium
import pandas as pd
import streamlit as st
from streamlit_folium import st_folium

from common.config import load_config, rates_from_config
from common.errors import InvalidCoordinate, PersistenceWriteWarning
from common.logging_setup import setup_logging
from common.types import Candidate, Point, TownSummary
from common.utils import fixed
from reporting.aggregate import summarize_all
from reporting.export import display_line, export
from store.annotations import AnnotationStore, store_from_config


# -------------------------
# Config
# -------------------------
P = load_config()
setup_logging(P.get("logging", {}).get("level", "INFO"))
RATES = rates_from_config(P)
DISPLAY_DECIMALS = int(P["display"]["decimals"])
REPORT_DECIMALS = int(P["report"]["decimals"])
REPORT_NAME = str(P["report"]["filename"])
MAP_CFG = P["map"]

PRIVACY_NOTES = [
    "No identifying data should be entered.",
    "Points snap to town centroids in this prototype.",
    "Clinicians should obtain appropriate consent (POPIA) before entering real data.",
]


# -------------------------
# Helpers
# -------------------------
@st.cache_resource
def get_store() -> AnnotationStore:
    # one store per server process: single writer
    return store_from_config(P)


def summaries_table(summaries: List[TownSummary]) -> pd.DataFrame:
    rows = [
        {
            "Town": s.name,
            "Diagnosed": s.observed_count,
            "Child population": s.child_population,
            "Expected": fixed(s.expected_center, DISPLAY_DECIMALS),
            "Expected range": f"{fixed(s.expected_low, DISPLAY_DECIMALS)}-{fixed(s.expected_high, DISPLAY_DECIMALS)}",
        }
        for s in summaries
    ]
    return pd.DataFrame(rows)


def town_popup_html(s: TownSummary) -> str:
    return (
        f"<strong>{s.name}</strong>"
        f"<div>Child population: {s.child_population:,}</div>"
        f"<div>Expected JIA cases (center): {fixed(s.expected_center, DISPLAY_DECIMALS)}</div>"
        f"<div>Reported here: {s.observed_count}</div>"
    )


def build_map(store: AnnotationStore, summaries: List[TownSummary]) -> folium.Map:
    m = folium.Map(
        location=[float(MAP_CFG["center_lat"]), float(MAP_CFG["center_lon"])],
        zoom_start=int(MAP_CFG["zoom"]),
        tiles="OpenStreetMap",
    )
    by_id = {s.town_id: s for s in summaries}
    for t in store.resolver.towns:
        s = by_id[t.id]
        folium.Marker(
            [t.lat, t.lon],
            popup=folium.Popup(town_popup_html(s), max_width=260),
            tooltip=t.name,
        ).add_to(m)
        if s.observed_count > 0:
            folium.CircleMarker(
                [t.lat, t.lon],
                radius=8 + 2 * min(s.observed_count, 10),
                color="#c2185b",
                fill=True,
                fill_opacity=0.35,
                popup=folium.Popup(
                    f"<strong>{t.name}</strong><div>{s.observed_count} anonymised patient(s) mapped to this town.</div>",
                    max_width=260,
                ),
            ).add_to(m)
    return m


def new_click(map_data: Optional[Dict[str, Any]]) -> Optional[Point]:
    """Return the clicked point if it differs from the last one already handled."""
    if not map_data or not map_data.get("last_clicked"):
        return None
    click = map_data["last_clicked"]
    key = (float(click["lat"]), float(click["lng"]))
    if st.session_state.get("last_click_seen") == key:
        return None
    st.session_state["last_click_seen"] = key
    return Point(lat=key[0], lon=key[1])


def add_pending(store: AnnotationStore, point: Point, note: str) -> None:
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", PersistenceWriteWarning)
        try:
            ann = store.append(Candidate(point=point, note=note.strip()))
        except InvalidCoordinate as e:
            st.session_state["flash_error"] = str(e)
            return
    town = store.resolver.get(ann.town_id)
    st.session_state["flash"] = f"Added an anonymised point to {town.name if town else ann.town_id}."
    if any(issubclass(w.category, PersistenceWriteWarning) for w in caught):
        st.session_state["flash_warning"] = "The point is kept for this session but could not be saved to disk."


# -------------------------
# UI
# -------------------------
st.set_page_config(page_title="JIA Mapping Prototype", layout="wide")

store = get_store()
summaries = summarize_all(store.resolver.towns, store.all(), RATES)

with st.sidebar:
    st.title("Arthritis Kids South Africa: JIA Mapping Prototype")
    st.caption(
        "Click on the map to add an anonymised patient point. "
        "Points are snapped to the nearest town centroid."
    )
    st.download_button(
        "Export summary CSV",
        data=export(store.resolver.towns, store.all(), RATES, REPORT_DECIMALS),
        file_name=REPORT_NAME,
        mime="text/csv",
    )

    st.subheader("Town summaries")
    for s in summaries:
        st.markdown(f"- {display_line(s, RATES, DISPLAY_DECIMALS)}")

    st.subheader("Privacy notes")
    for line in PRIVACY_NOTES:
        st.caption(f"• {line}")

if st.session_state.get("flash"):
    st.success(st.session_state.pop("flash"))
if st.session_state.get("flash_warning"):
    st.warning(st.session_state.pop("flash_warning"))
if st.session_state.get("flash_error"):
    st.error(st.session_state.pop("flash_error"))

map_data = st_folium(build_map(store, summaries), height=600, use_container_width=True, key="jia_map",
                     returned_objects=["last_clicked"])

clicked = new_click(map_data)
if clicked is not None:
    st.session_state["pending_point"] = clicked

pending: Optional[Point] = st.session_state.get("pending_point")
if pending is not None:
    target = store.resolver.resolve(pending)
    st.subheader("New point")
    st.write(f"Will be recorded for **{target.name}** (nearest town). The exact location is not stored.")
    with st.form("pending_point_form", clear_on_submit=True):
        note = st.text_input("Optional: add a short non-identifying note (e.g. 'clinic referral')", "")
        c1, c2 = st.columns(2)
        save = c1.form_submit_button("Add point")
        discard = c2.form_submit_button("Discard")
    if save:
        add_pending(store, pending, note)
        st.session_state["pending_point"] = None
        st.rerun()
    elif discard:
        st.session_state["pending_point"] = None
        st.rerun()

st.subheader("Observed vs expected")
st.dataframe(summaries_table(summaries), use_container_width=True, hide_index=True)
st.caption(
    f"Expected cases use {RATES.center:g} per 1000 children "
    f"(range {RATES.low:g}-{RATES.high:g}). Annotations stored: {len(store)}"
)
