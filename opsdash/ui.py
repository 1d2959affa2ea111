"""Helpers shared by the Streamlit pages."""

from __future__ import annotations

import logging
from typing import Optional

import streamlit as st

from opsdash.auth import require_login
from opsdash.client import ApiClient, ApiResult
from opsdash.config import get_config
from opsdash.feed import CASCADE_FAILED_MESSAGE, FeedOutcome
from opsdash.logging_setup import setup_logging
from opsdash.theme import set_theme

logger = logging.getLogger(__name__)


def flash(message: str, icon: Optional[str] = None) -> None:
    """Queue a toast that survives the next st.rerun()."""
    st.session_state.setdefault("_flash", []).append((message, icon))


def show_flashes() -> None:
    for message, icon in st.session_state.pop("_flash", []):
        st.toast(message, icon=icon)


def page_setup(title: str, icon: str) -> ApiClient:
    """Theme, logging and login gate; returns a client bound to the signed-in user."""
    set_theme(page_title=title, page_icon=icon)
    cfg = get_config()
    setup_logging(level=cfg.log_level, log_dir=cfg.log_dir)
    show_flashes()
    user = require_login()
    return ApiClient.from_config(user, cfg)


def toast_result(result: ApiResult, success: str, failure: str) -> bool:
    if result.success:
        flash(success, "✅")
        return True
    logger.warning("%s: %s", failure, result.error)
    flash(f"{failure}: {result.error}" if result.error else failure, "⚠️")
    return False


def toast_outcome(outcome: FeedOutcome) -> None:
    flash(outcome.message, "✅" if outcome.ok else "⚠️")
    if outcome.cascade_failed:
        flash(CASCADE_FAILED_MESSAGE, "⚠️")
