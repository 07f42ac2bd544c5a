# ================================
# FILE: sales_map_ui.py
# PURPOSE: Streamlit front-end — nearby sales on a map + list cards
# Run:  streamlit run sales_map_ui.py
# ================================

from __future__ import annotations

import os

import pandas as pd
import streamlit as st
import streamlit.components.v1 as components
from dotenv import load_dotenv
from streamlit_folium import st_folium

from salemap.geo import DEFAULT_VIEW_RADIUS_M
from salemap.map_view import (
    LOCATION_FALLBACK_MSG,
    ViewerLocationError,
    build_sales_map,
    cards_html,
    locate_viewer,
    nearby_sales,
)
from salemap.stores_geojson import StoreFileError, load_features

load_dotenv()
DATA_PATH = os.getenv("SALES_OUTPUT_PATH", "stores.geojson")

st.set_page_config(page_title="Sales near you", layout="wide")
st.title("🛍️ Sales near you")


@st.cache_data
def _load(path: str):
    return load_features(path)


# ---- Sidebar: where am I, how far ----
with st.sidebar:
    where = st.text_input("Your location", placeholder="60.1700, 24.9400 or Kamppi, Helsinki")
    show_all = st.checkbox("Show every store (no distance filter)", value=False)
    radius_km = st.number_input(
        "Radius (km)", min_value=0.5, max_value=100.0, step=0.5,
        value=DEFAULT_VIEW_RADIUS_M / 1000, disabled=show_all,
    )

if not where:
    st.info("Enter your location in the sidebar to see sales around you.")
    st.stop()

# One-shot lookup per distinct input
if st.session_state.get("_where") != where:
    st.session_state._where = where
    try:
        st.session_state.viewer = locate_viewer(where)
    except ViewerLocationError as e:
        st.session_state.viewer = None
        st.session_state.viewer_error = str(e)

viewer = st.session_state.get("viewer")
if viewer is None:
    st.error(f"{LOCATION_FALLBACK_MSG} 😢 ({st.session_state.get('viewer_error', '')})")
    st.stop()

try:
    features = _load(DATA_PATH)
except StoreFileError as e:
    st.error(f"Store data unavailable: {e}")
    st.stop()

hits = nearby_sales(viewer, features, None if show_all else radius_km * 1000)

col_map, col_list = st.columns([2, 1])
with col_map:
    st_folium(build_sales_map(viewer, hits), width=None, height=600, returned_objects=[])
with col_list:
    st.subheader(f"{len(hits)} sale(s)")
    if hits:
        components.html(cards_html(hits), height=600, scrolling=True)

if hits:
    df = pd.DataFrame([{
        "Name": f.name,
        "Headline": f.headline,
        "Discount": f.discount or "",
        "Distance (m)": round(viewer.distance_to(f)),
        "Website": f.website,
    } for f in hits])
    with st.expander("Table view"):
        st.dataframe(df.sort_values("Distance (m)"), width="stretch", hide_index=True)
