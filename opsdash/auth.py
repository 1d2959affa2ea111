import os

import streamlit as st


def check_credentials(username, password):
    valid_username = os.environ.get("VALID_USERNAME", "")
    valid_password = os.environ.get("VALID_PASSWORD", "")
    if not valid_username or not valid_password:
        return False
    return username == valid_username and password == valid_password


def login(session_state, username, password):
    if check_credentials(username, password):
        set_login_state(session_state, True, user_id=username)
        return True
    return False


def logout(session_state):
    set_login_state(session_state, False)
    for key in ("user_id", "feed", "onboarding"):
        session_state.pop(key, None)


def is_logged_in(session_state):
    return session_state.get("logged_in", False)


def set_login_state(session_state, state, user_id=None):
    session_state["logged_in"] = state
    if user_id is not None:
        session_state["user_id"] = user_id


def current_user(session_state):
    """User id sent as X-User-Id, or None when signed out."""
    if not is_logged_in(session_state):
        return None
    return session_state.get("user_id")


def require_login():
    """Stop the page with a notice when nobody is signed in."""
    user = current_user(st.session_state)
    if not user:
        st.warning("Please log in from the home page first.")
        st.stop()
    return user
