"""
Overview page: field plots on a map, KML import, manual plot entry.
"""

# Ensure project root is on sys.path (Streamlit page files need this).
import sys as _sys; from pathlib import Path as _Path; _r = str(_Path(__file__).resolve().parents[3]); _r in _sys.path or _sys.path.insert(0, _r)  # noqa: E702,I001

import streamlit as st  # noqa: E402

from src.ui.components.plots_panel import (  # noqa: E402
    get_plots_state,
    refresh_plots,
    render_kml_import,
    render_manual_plot_form,
    render_plot_list,
    render_plot_map,
)

st.header("Overview")

plots_state = get_plots_state()
if plots_state.is_loading:
    with st.spinner("Loading plots..."):
        refresh_plots()

map_col, side_col = st.columns([2, 1])
with map_col:
    render_plot_map(plots_state.plots)
    render_plot_list(plots_state.plots)
with side_col:
    render_kml_import()
    st.divider()
    render_manual_plot_form()
