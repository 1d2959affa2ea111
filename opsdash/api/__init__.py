"""REST service (FastAPI) backing the dashboard pages."""

from opsdash.api.app import create_app

__all__ = ["create_app"]
