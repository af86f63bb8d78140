"""Infrastructure layer — SQLite database, stores, and the change feed.

This layer depends on stdlib, SQLAlchemy, and the domain records it
persists. It must never import from services, commands, or output.
The service layer bridges between the core and these stores.
"""
