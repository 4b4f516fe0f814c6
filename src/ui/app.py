"""
UAS Ops Streamlit UI: main entry point.

Run with: ``streamlit run src/ui/app.py``
"""

# ---------------------------------------------------------------------------
# Ensure project root is on sys.path so ``from src.xxx`` imports work.
# Streamlit replaces sys.path[0] with the script directory (src/ui/),
# which removes the project root needed for absolute ``src.*`` imports.
# ---------------------------------------------------------------------------
import sys  # noqa: E402
from pathlib import Path  # noqa: E402

_project_root = str(Path(__file__).resolve().parent.parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

import streamlit as st  # noqa: E402

from src.core.state import VoiceCommandState  # noqa: E402
from src.ui.api_client import get_api_client  # noqa: E402

# ---------------------------------------------------------------------------
# Page config (must be first Streamlit call)
# ---------------------------------------------------------------------------
st.set_page_config(
    page_title="UAS Ops",
    page_icon="\U0001f6f0\ufe0f",
    layout="wide",
)

# ---------------------------------------------------------------------------
# Session state defaults
# ---------------------------------------------------------------------------
_DEFAULTS = {
    "api_base_url": "http://localhost:8000",
    "voice_status": "idle",
    "voice_transcript": None,
    "voice_error": None,
    "voice_bands": None,
}

for key, value in _DEFAULTS.items():
    if key not in st.session_state:
        st.session_state[key] = value
if "voice_command" not in st.session_state:
    st.session_state.voice_command = VoiceCommandState()

# ---------------------------------------------------------------------------
# Navigation (multipage)
# ---------------------------------------------------------------------------
overview_page = st.Page(
    "pages/01_overview.py",
    title="Overview",
    icon="\U0001f5fa\ufe0f",
    default=True,
)
voice_page = st.Page(
    "pages/02_voice_command.py",
    title="Voice Command",
    icon="\U0001f3a4",
)

# ---------------------------------------------------------------------------
# Sidebar
# ---------------------------------------------------------------------------
with st.sidebar:
    st.title("\U0001f6f0\ufe0f UAS Ops")
    st.caption("Field plots and voice commands")
    st.divider()
    st.session_state.api_base_url = st.text_input(
        "Backend API URL",
        value=st.session_state.api_base_url,
        help="URL of the FastAPI backend server (default: http://localhost:8000)",
    )

    _client = get_api_client(st.session_state.api_base_url)
    _conn_ok, _conn_msg = _client.check_connection()
    if _conn_ok:
        st.success(f"Backend: {_conn_msg}")
    else:
        st.error(f"Backend: {_conn_msg}")

    st.divider()
    if st.button("Voice command", type="primary", use_container_width=True):
        st.session_state.voice_command.trigger_auto_record()
        st.switch_page(voice_page)

nav = st.navigation([overview_page, voice_page])
nav.run()
