"""Customer restriction exports"""

from .models import CustomerRestriction, RestrictionPolicy
from .service import RestrictionService, normalize_identifier, parse_identifier

__all__ = [
    "CustomerRestriction",
    "RestrictionPolicy",
    "RestrictionService",
    "normalize_identifier",
    "parse_identifier",
]
