"""
Library Catalog API Package

REST API for a library catalog (authors and books) with Google OAuth
session login.

Package Structure:
- config.py: Application configuration using Pydantic Settings
- database.py: SQLAlchemy engine, session factory and declarative base
- main.py: FastAPI application factory and configuration
- dependencies.py: Dependency injection helpers
- models/: SQLAlchemy ORM models (authors, books, sessions)
- schemas/: Pydantic request/response schemas and field rules
- routers/: API route handlers
- services/: Validation, authorization, CRUD pipeline, sessions, OAuth
"""

__version__ = "1.0.0"
