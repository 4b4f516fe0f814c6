"""
Voice command page: record a short command and show its transcript.
"""

# Ensure project root is on sys.path (Streamlit page files need this).
import sys as _sys; from pathlib import Path as _Path; _r = str(_Path(__file__).resolve().parents[3]); _r in _sys.path or _sys.path.insert(0, _r)  # noqa: E702,I001

import streamlit as st  # noqa: E402

from src.ui.components.voice_panel import render_voice_command  # noqa: E402

st.header("Voice Command")
render_voice_command()
