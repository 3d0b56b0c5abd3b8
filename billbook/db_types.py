"""Database-agnostic type definitions for SQLAlchemy models.

This module provides type definitions that work with both SQLite and PostgreSQL.
"""
from sqlalchemy import JSON, Numeric, Uuid

# JSON works with both SQLite and PostgreSQL (JSONB is PostgreSQL-only)
JSONType = JSON

# Generic UUID: native on PostgreSQL, CHAR(32) on SQLite
UUIDType = Uuid

# Money and quantities. Six places hold per-line tax amounts exactly for
# two-place rates and quantities.
MoneyType = Numeric(20, 6)
