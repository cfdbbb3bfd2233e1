"""
SocialHub Backend: Application Package Initializer
====================================================

What: Marks the `socialhub` directory as a Python package.
Who:  Imported by uvicorn (`socialhub.main:app`), Alembic, and pytest.

Architecture Note:
    The backend is split into layers:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, auth dependency
    ├─────────────────────────────────────┤
    │    Services (Identity, Graph,       │  ← ownership checks, graph-scoped
    │    Content, Feed, Search)           │    queries, pagination
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← injected AsyncSession per request
    └─────────────────────────────────────┘

    Routes never touch the ORM directly; services never see a Request.
"""

__version__ = "1.0.0"
