"""
EventHub Backend — Application Package
========================================

CRUD API for event records backed by MongoDB.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← document shape, image codec
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← document helpers + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Motor client lifecycle
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
