"""
VideoTube Backend — Application Package Initializer
====================================================

What: Marks the `videotube` directory as a Python package.
Who:  Imported by uvicorn (`videotube.main:app`), Alembic and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │   Routes (wrapped by async_handler) │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Entity Layer)     │  ← validation, uniqueness, hashing
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │   ConnectionManager (Persistence)   │  ← one pooled engine per process
    └─────────────────────────────────────┘
"""

__version__ = "0.1.0"
