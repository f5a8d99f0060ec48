"""
Test Suite for the Library Catalog API

Test Organization:
- conftest.py: Shared fixtures (test database, client, login, sample data)
- test_authors.py / test_books.py: /authors and /books endpoints
- test_auth.py: Google sign-in, current user, logout
- test_catalog.py: pipeline behavior outside HTTP (upstream failures)
- test_validation.py: field rules and violation lists
- test_sessions.py: session store and cookie middleware
- test_identity.py: Google profile mapping
- test_config.py: settings parsing

Running Tests:
    pip install -e ".[test]"
    pytest -v
"""
