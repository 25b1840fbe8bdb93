"""Data stores for persistence and caching.

Stores handle:
- PostgreSQL: engine, sessions, ORM base
- Redis: caching, TTL policies

No pricing/availability logic in stores - that belongs in services.
"""
