"""
Request Validation Module

Pydantic schemas for the four request shapes the API accepts (registration,
profile update, login and the route identifier). Validation is eager: every
violated field is reported, in field order, as a ``ValidationIssue``.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Optional, Type, TypeVar

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, ValidationError
from pydantic_core import PydanticCustomError

from .errors import DigitalBankError


EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')

# Full ISO-8601 timestamp in UTC, e.g. 1990-01-01T00:00:00.000Z; any fraction precision
TIMESTAMP_PATTERN = re.compile(r'^(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})(?:\.(\d+))?Z$')

NAME_MAX_LENGTH = 100
PASSWORD_MIN_LENGTH = 8

FIELD_LABELS = {
    "email": "Email",
    "firstName": "First name",
    "lastName": "Last name",
    "phoneNumber": "Phone number",
    "address": "Address",
    "dateOfBirth": "Date of birth",
    "password": "Password",
    "userId": "User ID",
}

T = TypeVar("T", bound=BaseModel)


@dataclass(frozen=True)
class ValidationIssue:
    """A single violated rule: the offending field path and a human message"""
    path: str
    message: str


class RequestValidationFailed(DigitalBankError):
    """Payload failed schema validation"""

    def __init__(self, issues: List[ValidationIssue]):
        super().__init__(format_issues(issues))
        self.issues = issues


def _check_email(value: str) -> str:
    if not EMAIL_PATTERN.match(value):
        raise PydanticCustomError("invalid_email", "Invalid email address")
    return value


def _check_timestamp(value: Optional[str]) -> Optional[str]:
    if value is not None:
        _parse_timestamp(value)
    return value


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    match = TIMESTAMP_PATTERN.match(value)
    if not match:
        raise PydanticCustomError("invalid_datetime", "Invalid datetime")
    seconds, fraction = match.groups()
    try:
        parsed = datetime.strptime(seconds, "%Y-%m-%dT%H:%M:%S")
    except ValueError:
        raise PydanticCustomError("invalid_datetime", "Invalid datetime")
    # Sub-microsecond digits are dropped
    microsecond = int((fraction or "").ljust(6, "0")[:6])
    return parsed.replace(microsecond=microsecond, tzinfo=timezone.utc)


EmailAddress = Annotated[str, AfterValidator(_check_email)]
Timestamp = Annotated[Optional[str], AfterValidator(_check_timestamp)]


class _RequestSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class RegistrationRequest(_RequestSchema):
    email: EmailAddress
    first_name: str = Field(alias="firstName", min_length=1, max_length=NAME_MAX_LENGTH)
    last_name: str = Field(alias="lastName", min_length=1, max_length=NAME_MAX_LENGTH)
    phone_number: Optional[str] = Field(None, alias="phoneNumber")
    address: Optional[str] = None
    date_of_birth: Timestamp = Field(None, alias="dateOfBirth")
    password: str = Field(min_length=PASSWORD_MIN_LENGTH)

    @property
    def date_of_birth_value(self) -> Optional[datetime]:
        return _parse_timestamp(self.date_of_birth)


class ProfileUpdateRequest(_RequestSchema):
    """
    Partial profile update. Every field is optional; which ones were sent is
    available through ``model_fields_set``. Names may not be null, the
    optional contact fields may be null to clear them. Unknown keys,
    including ``password``, are dropped.
    """
    first_name: str = Field(None, alias="firstName", min_length=1, max_length=NAME_MAX_LENGTH)
    last_name: str = Field(None, alias="lastName", min_length=1, max_length=NAME_MAX_LENGTH)
    phone_number: Optional[str] = Field(None, alias="phoneNumber")
    address: Optional[str] = None
    date_of_birth: Timestamp = Field(None, alias="dateOfBirth")

    @property
    def date_of_birth_value(self) -> Optional[datetime]:
        return _parse_timestamp(self.date_of_birth)


class LoginRequest(_RequestSchema):
    email: EmailAddress
    password: str = Field(min_length=1)


class UserIdParam(_RequestSchema):
    user_id: str = Field(alias="userId", min_length=1)


def _message_for(error: Dict[str, Any], label: str) -> str:
    error_type = error["type"]
    ctx = error.get("ctx") or {}

    if error_type == "missing":
        return f"{label} is required"
    if error_type == "string_type":
        return f"{label} must be a string"
    if error_type == "string_too_short":
        if ctx.get("min_length") == 1:
            return f"{label} is required"
        return f"{label} must be at least {ctx.get('min_length')} characters long"
    if error_type == "string_too_long":
        return f"{label} must be at most {ctx.get('max_length')} characters"
    return error["msg"]


def collect_issues(exc: ValidationError) -> List[ValidationIssue]:
    """Translate pydantic errors into ordered, human readable issues"""
    issues = []
    for error in exc.errors():
        path = ".".join(str(part) for part in error["loc"])
        field = str(error["loc"][0]) if error["loc"] else ""
        label = FIELD_LABELS.get(field, field or "Request body")
        issues.append(ValidationIssue(path=path, message=_message_for(error, label)))
    return issues


def validate_payload(schema: Type[T], payload: Any) -> T:
    """
    Validate a decoded JSON payload against a schema.

    Raises:
        RequestValidationFailed: carrying every violation found
    """
    if not isinstance(payload, dict):
        raise RequestValidationFailed([
            ValidationIssue(path="", message="Request body must be a JSON object")
        ])
    try:
        return schema.model_validate(payload)
    except ValidationError as e:
        raise RequestValidationFailed(collect_issues(e)) from e


def format_issues(issues: List[ValidationIssue]) -> str:
    """Join issue messages into the single error string returned to clients"""
    if not issues:
        return "Validation error"
    return "Validation error: " + ", ".join(issue.message for issue in issues)
