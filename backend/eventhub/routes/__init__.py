# Routes package init
"""
EventHub Backend — API Routes Package
=======================================

What:  HTTP route handlers that accept requests and return responses.

Route Inventory:
    - events.py:  /api/v3/app/events...   (event CRUD and image serving)
    - health.py:  GET /health             (service health check)

Routes stay thin: extract request data, call EventService, pick the status
code. Business rules live in services.
"""
