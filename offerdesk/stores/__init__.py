"""Data stores for persistence and counters.

Stores handle:
- Relational DB: session management, the offer repository
- Redis: rate limit counters

No workflow logic in stores - that belongs in services.
"""
