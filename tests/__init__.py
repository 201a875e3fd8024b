"""Query Results Test Suite.

This package contains unit and integration tests for the query-results project.

Test Structure:
- unit/: Unit tests for individual functions and classes
- integration/: Integration tests against a real PostgreSQL database
"""
