"""Alembic environment shipped with meetnrun; revision scripts live in MIGRATION_DIR."""
