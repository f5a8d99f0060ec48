"""
Services Package

Business logic kept apart from HTTP handling:
- catalog.py: the authors/books CRUD pipeline
- validation.py: request body checking and violation lists
- authorization.py: logged-in session check
- outcomes.py: pipeline results and the JSON envelope
- store.py: repository over SQLAlchemy sessions
- sessions.py: server-side session store and middleware
- identity.py: Google sign-in through Authlib
- rate_limiter.py: slowapi limiter and 429 handler
"""
