"""
AssetDesk Backend — Application Package Initializer
=====================================================

What: Notification backend for the AssetDesk IT asset, ticket and employee
      management application.
Who:  Imported by uvicorn (app.main:app), Alembic and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │  Services (Dispatcher, Delivery)    │  ← Routing rules, gating
    ├─────────────────────────────────────┤
    │  Models, Schemas, Snapshots (Data)  │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
