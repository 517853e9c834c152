"""
Schemas module - Request/Response schemas for API endpoints.

Difference from models:
- Models: how records are laid out in MongoDB
- Schemas: API contract (what client sends/receives)

Everything lives in backoffice.schemas.schemas.
"""
