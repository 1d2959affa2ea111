"""Google Calendar OAuth consent URL.

Only the first leg of the OAuth flow lives here: the service hands the
browser a consent URL requesting offline access to the user's calendars.
"""

from __future__ import annotations

import logging
from typing import List

from google_auth_oauthlib.flow import Flow

from opsdash.config import AppConfig
from opsdash.errors import CalendarConfigError

logger = logging.getLogger(__name__)

SCOPES: List[str] = [
    "https://www.googleapis.com/auth/calendar",
    "https://www.googleapis.com/auth/calendar.events",
]

AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
TOKEN_URI = "https://oauth2.googleapis.com/token"


def _client_config(config: AppConfig) -> dict:
    return {
        "web": {
            "client_id": config.google_client_id,
            "client_secret": config.google_client_secret,
            "auth_uri": AUTH_URI,
            "token_uri": TOKEN_URI,
            "redirect_uris": [config.google_redirect_uri],
        }
    }


def is_configured(config: AppConfig) -> bool:
    return bool(config.google_client_id and config.google_client_secret and config.google_redirect_uri)


def generate_auth_url(config: AppConfig) -> str:
    if not is_configured(config):
        raise CalendarConfigError()

    flow = Flow.from_client_config(
        _client_config(config),
        scopes=SCOPES,
        redirect_uri=config.google_redirect_uri,
    )
    url, _state = flow.authorization_url(access_type="offline", prompt="consent")
    logger.debug("generated calendar consent url for client %s", config.google_client_id)
    return url
