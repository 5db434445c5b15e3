"""
API test package for Taskboard.

Tests use the Flask test client and cover:
- registration, login, refresh and logout
- owner-scoped task CRUD, filtering and pagination
- admin statistics and user management
"""
