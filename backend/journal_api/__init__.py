"""
Journal API — Application Package Initializer
==============================================

What: Marks the `journal_api` directory as a Python package.
Who:  Imported by uvicorn (`journal_api.main:app`), Alembic and pytest.

Architecture Note:
    The backend keeps a layered layout:

    ┌─────────────────────────────────────┐
    │      Routes + Gate (API Layer)      │  ← HTTP concerns, trust levels
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← Scoped CRUD, cascade deletes
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │  Database + Blob Store (Persistence)│  ← Async sessions, file storage
    └─────────────────────────────────────┘

    Routes never touch SQL directly; services never touch HTTP objects
    beyond the uploaded file handle.
"""

__version__ = "1.0.0"
