"""opsdash - small-business operations dashboard.

This package contains:
- The SQLAlchemy-backed store for jobs, tasks, QBOs and onboarding data
- The FastAPI service exposing the store as a REST API
- Data accessors used by the Streamlit pages
- Progress, filter and cascade logic shared by the views
"""
