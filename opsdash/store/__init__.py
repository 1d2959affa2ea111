"""Dashboard store.

This package provides:
- SQLAlchemy models for jobs, tasks, owners, business functions, QBOs and
  onboarding records
- Repository functions returning plain dicts in the API wire format
- Engine/session management (SQLite by default, any SQLAlchemy URL via env)
"""

from .db import dispose_engines, get_engine, session_scope
from .repo import ensure_seed_data, init_db

__all__ = [
    "dispose_engines",
    "ensure_seed_data",
    "get_engine",
    "init_db",
    "session_scope",
]
