"""PostgreSQL persistence for user accounts (SQLAlchemy async + asyncpg)."""
