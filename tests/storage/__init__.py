"""
Tests for the storage layer.

Test Structure:

- **adapters/**: Explain adapters (SQLite, MySQL/MariaDB, PostgreSQL), mocked
  and live-server tests
- **models/**: `Record` callbacks and the author table definitions
- **test_relation.py**, **test_fixtures.py**, **test_factory.py**: relations,
  fixture loading and the engine factory

Run all storage tests:
    pytest tests/storage/ -v

Run adapter tests only:
    pytest tests/storage/adapters/ -v
"""
