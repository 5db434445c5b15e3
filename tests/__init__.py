"""
Test suite for the Taskboard service and client.

This package contains:
- unit/: token service, models, query engine, middleware, client session
- integration/: REST endpoints through the Flask test client
- security/: cookie hardening, token confusion, mass assignment
- contracts/: provider responses checked against the OpenAPI document
"""
