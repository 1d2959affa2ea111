import streamlit as st

from opsdash.auth import is_logged_in, login, logout
from opsdash.config import get_config
from opsdash.logging_setup import setup_logging
from opsdash.theme import set_theme
from opsdash.ui import show_flashes

set_theme()
cfg = get_config()
setup_logging(level=cfg.log_level, log_dir=cfg.log_dir)
show_flashes()

st.markdown(
    """
    <style>
    .main-hero { border-radius: 14px; padding: 1.8rem 1.6rem; max-width: 820px; margin: 1.5rem auto;
                 background: linear-gradient(120deg, #e0eafc 0%, #cfdef3 100%); text-align: center; }
    .main-hero h1 { font-size: 2.3rem; font-weight: 800; color: #0b63d6; margin-bottom: .3rem; }
    .main-hero p { color: #3a4a6b; font-size: 1.05rem; }
    </style>
    """,
    unsafe_allow_html=True,
)

st.markdown(
    '<div class="main-hero"><h1>Ops Dashboard</h1>'
    "<p>Jobs, next tasks and quantified business objectives for your small business.</p></div>",
    unsafe_allow_html=True,
)

if is_logged_in(st.session_state):
    st.success(f"Signed in as **{st.session_state.get('user_id')}**. Use the sidebar to open a page.")
    if st.button("Log out"):
        logout(st.session_state)
        st.rerun()
else:
    with st.form("login_form"):
        username = st.text_input("Username")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Log in")
    if submitted:
        if login(st.session_state, username, password):
            st.rerun()
        else:
            st.error("Invalid username or password.")
