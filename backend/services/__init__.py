"""
Services layer for business logic.

This package contains service modules that encapsulate business logic
separate from the API routes. Modules are imported directly
(``from services.submission_service import ...``) to keep the authentication
layer free of import cycles.
"""
