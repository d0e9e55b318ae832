"""
Notewise Backend — Application Package Initializer
===================================================

What: Marks the `notewise` directory as a Python package.
Who:  Imported by uvicorn (`notewise.main:app`), Alembic, and pytest.

Architecture Note:
    The backend is layered the same way top to bottom:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Orchestrators (Summary / Tags)    │  ← validate → generate → persist
    ├─────────────────────────────────────┤
    │  Generation Client (Gemini façade)  │  ← token budget, retry, usage
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Orchestrators never raise for ordinary failures: they return a
    `{success, data?, error?}` result that routes hand straight to the client.
"""

__version__ = "1.0.0"
