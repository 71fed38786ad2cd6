"""
Deskmate Backend — Application Package Initializer
===================================================

What: Marks the `deskmate` directory as a Python package.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    The backend is layered:

    ┌─────────────────────────────────────┐
    │     Routes (API Layer) + Auth Gate  │  ← HTTP concerns, bearer token check
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← Credentials, tokens, owned resources
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Routes never query the database directly. Every read or write of a note,
    todo or journal unit goes through the ownership-scoped resource store.
"""

__version__ = "1.0.0"
