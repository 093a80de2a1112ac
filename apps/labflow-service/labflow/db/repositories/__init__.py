"""
Per-domain repository modules for database access.

Each module exposes plain functions taking a Session as first argument and
commits once per mutating call.
"""
