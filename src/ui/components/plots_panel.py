"""
Plot widgets: list with map, KML import, manual corner entry.

The plot list lives in a ``PlotsState`` kept in session state; every
widget that changes plots refreshes it afterwards.
"""

import asyncio
import logging

import streamlit as st

from src.core.models import PlotResponse
from src.core.state import PlotsState
from src.ui.api_client import APIError, get_api_client

logger = logging.getLogger(__name__)


def _hex_to_rgba(color: str, alpha: int = 160) -> list[int]:
    color = color.lstrip("#")
    return [int(color[i : i + 2], 16) for i in (0, 2, 4)] + [alpha]


async def _fetch_plots() -> list[PlotResponse]:
    client = get_api_client(st.session_state.api_base_url)
    rows = await asyncio.to_thread(client.list_plots)
    return [PlotResponse.model_validate(row) for row in rows]


def get_plots_state() -> PlotsState:
    """Return the session's plot list holder, creating it on first use."""
    if "plots_state" not in st.session_state:
        st.session_state.plots_state = PlotsState(_fetch_plots)
    return st.session_state.plots_state


def refresh_plots() -> list[PlotResponse]:
    """Reload plots. On failure the previous list stays on screen."""
    return asyncio.run(get_plots_state().refresh())


def render_plot_map(plots: list[PlotResponse]) -> None:
    """Show every plot corner on a map, coloured per plot."""
    points = [(c, _hex_to_rgba(p.color)) for p in plots for c in p.display_corners]
    if not points:
        st.info("No plots yet. Import a KML file or add one manually.")
        return
    data = {
        "lat": [c.lat for c, _ in points],
        "lon": [c.lng for c, _ in points],
        "color": [rgba for _, rgba in points],
    }
    st.map(data, latitude="lat", longitude="lon", color="color", size=8)


def render_plot_list(plots: list[PlotResponse]) -> None:
    """Expandable list of plots with their corners and a delete button."""
    client = get_api_client(st.session_state.api_base_url)
    for plot in plots:
        with st.expander(f"{plot.name} ({len(plot.corners)} corners)"):
            st.markdown(
                f"<span style='color:{plot.color}'>&#9632;</span> {plot.color}",
                unsafe_allow_html=True,
            )
            if plot.created_at:
                st.caption(f"Created {plot.created_at}")
            st.dataframe([c.model_dump() for c in plot.display_corners], hide_index=True)
            if st.button("Delete", key=f"delete_{plot.id}"):
                try:
                    client.delete_plot(plot.id)
                except APIError as exc:
                    st.error(exc.message)
                else:
                    st.toast(f"Deleted {plot.name}")
                    refresh_plots()
                    st.rerun()


def render_kml_import() -> None:
    """File uploader that sends a KML file to the import endpoint."""
    uploaded = st.file_uploader("Import KML", type=["kml"], key="kml_upload")
    if uploaded is None or not st.button("Import plots", type="primary"):
        return
    client = get_api_client(st.session_state.api_base_url)
    try:
        result = client.import_kml(uploaded.name, uploaded.getvalue())
    except APIError as exc:
        st.error(exc.message)
        return
    st.success(f"Imported {result['imported']} plot(s): {', '.join(result['names'])}")
    refresh_plots()
    st.rerun()


def parse_corner_lines(text: str) -> list[dict]:
    """Parse ``lat, lng`` lines; blank lines are ignored.

    Raises:
        ValueError: If a line is not two comma-separated numbers.
    """
    corners = []
    for line in text.splitlines():
        if not line.strip():
            continue
        lat, lng = (float(part) for part in line.split(","))
        corners.append({"lat": lat, "lng": lng})
    return corners


def render_manual_plot_form() -> None:
    """Form for entering a plot by hand, one ``lat, lng`` pair per line."""
    with st.form("manual_plot", clear_on_submit=True):
        name = st.text_input("Plot name")
        corners_text = st.text_area("Corners (lat, lng per line)", height=120)
        submitted = st.form_submit_button("Add plot")
    if not submitted:
        return
    try:
        corners = parse_corner_lines(corners_text)
    except ValueError:
        st.error("Each line must be 'lat, lng'.")
        return
    if len(corners) < 3:
        st.error("A plot needs at least 3 corners.")
        return
    try:
        get_api_client(st.session_state.api_base_url).create_plot(name, corners)
    except APIError as exc:
        st.error(exc.message)
        return
    st.success("Plot added")
    refresh_plots()
    st.rerun()
