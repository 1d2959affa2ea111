import os

import streamlit as st
from streamlit.errors import StreamlitAPIException

_FALLBACK_CSS = """
.block-container { padding-top: 1.5rem; }
div[data-testid="stMetricValue"] { font-size: 1.6rem; }
.opsdash-card { border: 1px solid #e5e7eb; border-radius: 10px; padding: 0.75rem 1rem; margin-bottom: 0.5rem; }
.opsdash-muted { color: #6b7280; font-size: 0.85rem; }
"""


def set_theme(
    page_title: str = "Ops Dashboard",
    page_icon: str = "📋",
    layout: str = "wide",
    initial_sidebar_state: str = "expanded",
):
    """Configure Streamlit page & inject global CSS.

    Safe to call once at top of each page. Subsequent calls will be ignored by
    Streamlit for page_config but CSS will still be (re)injected. Uses
    assets/custom_theme.css when present, the built-in rules otherwise.
    """
    try:
        st.set_page_config(
            page_title=page_title,
            page_icon=page_icon,
            layout=layout,
            initial_sidebar_state=initial_sidebar_state,
        )
    except StreamlitAPIException:
        # set_page_config can only be called once; ignore if already set.
        pass

    theme_file = os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "assets", "custom_theme.css")
    css = _FALLBACK_CSS
    if os.path.exists(theme_file):
        with open(theme_file, "r", encoding="utf-8") as f:
            css = f.read()
    st.markdown(f"<style>{css}</style>", unsafe_allow_html=True)
