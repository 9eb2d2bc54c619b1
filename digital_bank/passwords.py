"""
Credential Hashing Module

One-way password hashing with bcrypt. Digests embed their own salt and cost
factor, so verification needs nothing but the stored digest.
"""

import bcrypt

from .errors import ComparisonError, HashingError


DEFAULT_ROUNDS = 12

# bcrypt only consumes the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72


def _encode(plaintext: str) -> bytes:
    return plaintext.encode('utf-8')[:MAX_PASSWORD_BYTES]


class PasswordHasher:
    """Salted bcrypt hasher with a configurable cost factor"""
    
    def __init__(self, rounds: int = DEFAULT_ROUNDS):
        if not 4 <= rounds <= 31:
            raise ValueError("bcrypt rounds must be between 4 and 31")
        self.rounds = rounds
    
    def hash(self, plaintext: str) -> str:
        """
        Hash a plaintext password.
        
        Raises:
            HashingError: if the underlying primitive fails
        """
        try:
            digest = bcrypt.hashpw(_encode(plaintext), bcrypt.gensalt(rounds=self.rounds))
        except Exception as e:
            raise HashingError(f"Password hashing failed: {e}") from e
        return digest.decode('ascii')
    
    def verify(self, plaintext: str, digest: str) -> bool:
        """
        Check a plaintext password against a stored digest in constant time.
        
        Returns False for a mismatch; never raises for a legitimate mismatch.
        
        Raises:
            ComparisonError: if the digest is malformed
        """
        try:
            return bcrypt.checkpw(_encode(plaintext), digest.encode('ascii'))
        except (ValueError, TypeError, UnicodeEncodeError, AttributeError) as e:
            raise ComparisonError(f"Password comparison failed: {e}") from e
