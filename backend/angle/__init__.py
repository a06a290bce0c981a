"""
Angle Backend — Application Package Initializer
================================================

What: Marks the `angle` directory as a Python package.
Who:  Imported by uvicorn (`angle.main:app`), pytest, and `python -m angle`.

Architecture Note:
    The backend is a thin read-only layer over the hosted episode table:

    ┌─────────────────────────────────────┐
    │     Routes (JSON / HTML / PNG)      │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │  Services (slugs, meta, images,     │  ← Rendering and lookup rules
    │            sitemap, episodes)       │
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Nothing in this package writes to the database.
"""

__version__ = "1.0.0"
