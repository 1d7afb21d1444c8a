"""Test suite for the teamboard backend.

Organized into three categories:

1. core/: Unit tests for value objects, aggregates and use cases
   - No external dependencies, fast execution
   - Uses in-memory fakes for repository ports

2. adapters/: Integration tests for adapter implementations
   - SQLite against a temporary file, PostgreSQL with a mocked pool
   - HTTP server and CLI handler driven end to end

3. fakes/: Port implementations for testing
   - In-memory repositories that record calls
"""
