"""External adapters for the teamboard backend.

This package contains all external dependencies (SQLite, PostgreSQL, HTTP)
and provides implementations of the core port interfaces.

Adapter Organization:

- store/: Repository implementations (SQLite, PostgreSQL)
- http/: JSON HTTP surface over the use cases
- cli/: Interactive management commands
"""
