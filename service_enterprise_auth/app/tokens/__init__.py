"""
Bearer token issuance and validation for the enterprise auth service.
"""

from .codec import TokenClaims, TokenCodec

__all__ = [
    "TokenClaims",
    "TokenCodec",
]
