"""Identity provider boundary."""
from .verifier import Identity, IdentityVerifier, JWTIdentityVerifier, create_identity_token

__all__ = ["Identity", "IdentityVerifier", "JWTIdentityVerifier", "create_identity_token"]
