"""
Access component - entitlement queries by customer email.
"""

from .component import AccessQueryService, derive_access
from .models import AccessView

__all__ = [
    "AccessQueryService",
    "AccessView",
    "derive_access",
]
