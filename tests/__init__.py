"""
SignServer Test Suite - Automated testing framework for the sign server.

This package contains all test modules organized by test type:
- unit/ - Unit tests against an in-memory MySQL backend
- integration/ - Tests against a real MySQL server (needs DB_TEST_HOST)
- fixtures/ - Shared test doubles
- data/ - Test data factories
"""
