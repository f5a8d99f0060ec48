"""
API Routers Package

Router Structure:
- authors.py: /authors endpoints
- books.py: /books endpoints
- auth.py: /auth endpoints (Google sign-in, current user, logout)

Each router is imported and registered in main.py under API_PREFIX.
"""

from library_api.routers.auth import router as auth_router
from library_api.routers.authors import router as authors_router
from library_api.routers.books import router as books_router

__all__ = [
    "auth_router",
    "authors_router",
    "books_router",
]
