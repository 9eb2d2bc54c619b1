"""
Service container and request dependencies
"""

import json
from typing import Any, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from ..accounts import AccountService
from ..config import DigitalBankConfig
from ..encryption import EncryptionProvider, create_encryption_provider
from ..errors import ApiError, error_response, INTERNAL_SERVER_ERROR
from ..logging_config import get_logger, log_action
from ..passwords import PasswordHasher
from ..storage import UserStore, create_user_store
from ..tokens import TokenService
from ..validation import ValidationIssue, format_issues


logger = get_logger("digital_bank.api")


class DigitalBank:
    """Digital bank services wired from an explicit configuration"""
    
    def __init__(self, config: DigitalBankConfig, store: Optional[UserStore] = None):
        self.config = config
        
        # Initialize storage
        if store is None:
            store = create_user_store(config.database_url, self._create_encryption_provider())
        self.store = store
        
        # Initialize auth components
        self.hasher = PasswordHasher(rounds=config.bcrypt_rounds)
        self.tokens = TokenService(
            secret=config.jwt_secret,
            expiry_hours=config.jwt_expiry_hours,
            algorithm=config.jwt_algorithm
        )
        self.accounts = AccountService(self.store, self.hasher, self.tokens)
    
    def _create_encryption_provider(self) -> Optional[EncryptionProvider]:
        """Create PII encryption provider if enabled"""
        if not self.config.encryption_enabled:
            return None
        
        return create_encryption_provider(
            self.config.encryption_provider,
            self.config.encryption_master_key
        )
    
    def close(self) -> None:
        self.store.close()


# Dependency to get the digital bank services
def get_digital_bank(request: Request) -> DigitalBank:
    return request.app.state.bank


async def read_json(request: Request) -> Any:
    """Decode the request body; an empty body reads as an empty object"""
    body = await request.body()
    if not body.strip():
        return {}
    try:
        return json.loads(body)
    except ValueError:
        raise ApiError(
            format_issues([ValidationIssue(path="", message="Request body must be valid JSON")]),
            400
        )


def internal_error(operation: str, user_id: Optional[str] = None) -> JSONResponse:
    """Log the exception being handled and return the generic 500 body"""
    log_action(
        logger, "error", f"Unhandled error during {operation}",
        user_id=user_id, action=f"{operation}_error", resource="api", exc_info=True
    )
    return error_response(INTERNAL_SERVER_ERROR, 500)
