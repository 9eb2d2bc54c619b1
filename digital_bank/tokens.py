"""
Token Service Module

Issues and verifies signed, time-limited identity assertions (HS256 JWTs)
carrying the subject user id and email. Tokens are stateless: nothing is
persisted server side and they are invalidated only by expiry or by rotating
the signing secret.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone, timedelta
from typing import Any, Dict, Optional

import jwt


BEARER_PREFIX = "Bearer "

logger = logging.getLogger("digital_bank.tokens")


@dataclass(frozen=True)
class TokenClaims:
    """Identity payload embedded in a token"""
    user_id: str
    email: str
    
    def to_payload(self) -> Dict[str, Any]:
        return {"userId": self.user_id, "email": self.email}


class TokenService:
    """Signs and verifies identity tokens with a server-held secret"""
    
    def __init__(self, secret: str, expiry_hours: int = 24, algorithm: str = "HS256"):
        self.secret = secret
        self.expiry = timedelta(hours=expiry_hours)
        self.algorithm = algorithm
    
    def issue(self, claims: TokenClaims) -> str:
        """Serialize and sign claims, adding issued-at and expiry metadata"""
        now = datetime.now(timezone.utc)
        payload = claims.to_payload()
        payload["iat"] = now
        payload["exp"] = now + self.expiry
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)
    
    def verify(self, token: str) -> Optional[TokenClaims]:
        """
        Check signature and expiry and return the claims.
        
        Every failure (malformed token, bad signature, expiry, missing claims)
        yields None so callers treat them all as unauthenticated.
        """
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["exp"]},
            )
        except jwt.ExpiredSignatureError:
            logger.debug("Token rejected: expired")
            return None
        except jwt.InvalidTokenError as e:
            logger.debug("Token rejected: %s", e)
            return None
        
        user_id = payload.get("userId")
        email = payload.get("email")
        if not isinstance(user_id, str) or not isinstance(email, str) or not user_id:
            logger.debug("Token rejected: missing subject claims")
            return None
        
        return TokenClaims(user_id=user_id, email=email)
    
    @staticmethod
    def extract_from_header(header_value: Optional[str]) -> Optional[str]:
        """
        Return the token after a literal ``"Bearer "`` prefix.
        
        Returns None for a missing or empty header or one without that exact,
        case-sensitive prefix. The token itself is not validated.
        """
        if not header_value or not header_value.startswith(BEARER_PREFIX):
            return None
        return header_value[len(BEARER_PREFIX):]
