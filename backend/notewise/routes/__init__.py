# Routes package init
"""
Notewise Backend — API Routes Package
=======================================

Route Inventory:
    - notes.py:   note CRUD and trash under /api/notes, /api/trash
    - ai.py:      summaries, tags, previews, generation and usage
    - health.py:  GET /health, GET /health/full
    - deps.py:    shared dependencies (user id, generation client, orchestrators)

Routes stay thin: they read the request, call a service and shape the
response. Business rules live in notewise.services.
"""
