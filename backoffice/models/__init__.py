"""
Models module - internal data structures.

Difference from schemas:
- Models: how records are laid out in MongoDB
- Schemas: API contract (what client sends/receives)
"""

from backoffice.models.profile import CORE_FIELDS, COLLABORATORS, AGENCIES, PROFILE_KINDS, ProfileKind

__all__ = [
    "CORE_FIELDS",
    "COLLABORATORS",
    "AGENCIES",
    "PROFILE_KINDS",
    "ProfileKind"
]
