"""
Account Handlers Module

Orchestrates registration, login and the ownership-gated profile operations:
request validation, store lookups, password hashing and token issuance, and
response shaping. Handled failures are raised as ApiError with the HTTP status
they map to; anything else is left to the route guard, which turns it into a
generic 500.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional, Type, TypeVar
import uuid

from pydantic import BaseModel

from .errors import (
    ApiError, DuplicateEmailError, HashingError, UserNotFoundError,
    INTERNAL_SERVER_ERROR,
)
from .logging_config import get_logger, log_action
from .passwords import PasswordHasher
from .storage import UserStore
from .tokens import TokenClaims, TokenService
from .users import User, UserUpdate
from .validation import (
    LoginRequest, ProfileUpdateRequest, RegistrationRequest, UserIdParam,
    RequestValidationFailed, format_issues, validate_payload,
)


USER_EXISTS = "User with this email already exists"
INVALID_CREDENTIALS = "Invalid email or password"
TOKEN_REQUIRED = "Authorization token required"
INVALID_TOKEN = "Invalid or expired token"
FORBIDDEN = "Forbidden: You can only access your own data"
USER_NOT_FOUND = "User not found"
DELETE_BLOCKED = "Cannot delete user with an active bank account"
USER_DELETED = "User deleted successfully"

T = TypeVar("T", bound=BaseModel)


class AccountService:
    """
    Request handlers for the user account endpoints.

    Each public method takes the already-decoded request pieces and returns
    the JSON response body for the success case.
    """

    def __init__(self, store: UserStore, hasher: PasswordHasher, tokens: TokenService):
        self.store = store
        self.hasher = hasher
        self.tokens = tokens
        self.logger = get_logger("digital_bank.accounts")

    def _validate(self, schema: Type[T], payload: Any) -> T:
        try:
            return validate_payload(schema, payload)
        except RequestValidationFailed as e:
            raise ApiError(format_issues(e.issues), 400)

    def _issue_token(self, user: User) -> str:
        return self.tokens.issue(TokenClaims(user_id=user.id, email=user.email))

    # Registration and login

    def register(self, payload: Any) -> Dict[str, Any]:
        """Create a user and return it with an access token (HTTP 201)"""
        request = self._validate(RegistrationRequest, payload)

        if self.store.find_by_email(request.email):
            raise ApiError(USER_EXISTS, 400)

        try:
            password_hash = self.hasher.hash(request.password)
        except HashingError:
            log_action(
                self.logger, "error", "Password hashing failed during registration",
                action="register_failed", resource="user", exc_info=True
            )
            raise ApiError(INTERNAL_SERVER_ERROR, 500)

        now = datetime.now(timezone.utc)
        user = User(
            id=str(uuid.uuid4()),
            email=request.email,
            first_name=request.first_name,
            last_name=request.last_name,
            password_hash=password_hash,
            created_at=now,
            updated_at=now,
            phone_number=request.phone_number,
            address=request.address,
            date_of_birth=request.date_of_birth_value,
            has_bank_account=False,
        )

        try:
            self.store.create(user)
        except DuplicateEmailError:
            # Lost a registration race for the same email
            raise ApiError(USER_EXISTS, 400)

        log_action(
            self.logger, "info", "User registered",
            user_id=user.id, action="register", resource="user"
        )

        return {"user": user.to_public_dict(), "token": self._issue_token(user)}

    def login(self, payload: Any) -> Dict[str, Any]:
        """Check credentials and return the user with an access token"""
        request = self._validate(LoginRequest, payload)

        user = self.store.find_by_email(request.email)
        if user is None or not self.hasher.verify(request.password, user.password_hash):
            log_action(
                self.logger, "warning", "Login rejected",
                user_id=user.id if user else None, action="login_failed", resource="auth"
            )
            raise ApiError(INVALID_CREDENTIALS, 401)

        log_action(
            self.logger, "info", "User authenticated successfully",
            user_id=user.id, action="login", resource="auth"
        )

        return {"user": user.to_public_dict(), "token": self._issue_token(user)}

    # Ownership-gated operations

    def authorize(self, authorization: Optional[str], user_id: str) -> TokenClaims:
        """
        Resolve the bearer token and require that it belongs to ``user_id``.

        Raises:
            ApiError: 400 for an empty id, 401 for a missing or invalid token,
                403 when the token subject is another user
        """
        self._validate(UserIdParam, {"userId": user_id})

        token = self.tokens.extract_from_header(authorization)
        if not token:
            raise ApiError(TOKEN_REQUIRED, 401)

        claims = self.tokens.verify(token)
        if claims is None:
            raise ApiError(INVALID_TOKEN, 401)

        if claims.user_id != user_id:
            log_action(
                self.logger, "warning", "Cross-user access denied",
                user_id=claims.user_id, action="access_denied", resource="user",
                extra={"target_user_id": user_id}
            )
            raise ApiError(FORBIDDEN, 403)

        return claims

    def _load_user(self, user_id: str) -> User:
        user = self.store.find_by_id(user_id)
        if user is None:
            raise ApiError(USER_NOT_FOUND, 404)
        return user

    def get_user(self, authorization: Optional[str], user_id: str) -> Dict[str, Any]:
        """Return the caller's own profile"""
        self.authorize(authorization, user_id)
        user = self._load_user(user_id)
        return {"user": user.to_public_dict()}

    def update_user(self, authorization: Optional[str], user_id: str, payload: Any) -> Dict[str, Any]:
        """Apply a partial profile update; absent fields are left untouched"""
        self.authorize(authorization, user_id)
        user = self._load_user(user_id)

        request = self._validate(ProfileUpdateRequest, payload)
        update = UserUpdate.from_request(request)

        if not update.is_empty:
            update.apply_to(user)
            try:
                self.store.update(user)
            except UserNotFoundError:
                raise ApiError(USER_NOT_FOUND, 404)

            log_action(
                self.logger, "info", "User profile updated",
                user_id=user.id, action="user_updated", resource="user",
                extra={"fields": sorted(update.fields_set)}
            )

        return {"user": user.to_public_dict()}

    def delete_user(self, authorization: Optional[str], user_id: str) -> Dict[str, Any]:
        """Delete the caller's account unless a bank account is linked"""
        self.authorize(authorization, user_id)
        user = self._load_user(user_id)

        if user.has_bank_account:
            log_action(
                self.logger, "info", "Deletion blocked by linked bank account",
                user_id=user.id, action="delete_blocked", resource="user"
            )
            raise ApiError(DELETE_BLOCKED, 409)

        if not self.store.delete(user.id):
            raise ApiError(USER_NOT_FOUND, 404)

        log_action(
            self.logger, "info", "User deleted",
            user_id=user.id, action="user_deleted", resource="user"
        )

        return {"message": USER_DELETED}
