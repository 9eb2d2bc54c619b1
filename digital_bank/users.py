"""
User Model Module

The persisted user record, its public (digest-free) JSON view, and the
partial-update record used by profile edits.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, Optional

from .validation import ProfileUpdateRequest


UPDATABLE_FIELDS = ("first_name", "last_name", "phone_number", "address", "date_of_birth")


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Render a datetime as a UTC ISO-8601 string with millisecond precision"""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def from_iso(value: Optional[str]) -> Optional[datetime]:
    """Parse a stored ISO-8601 string back into an aware datetime"""
    if value is None:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class User:
    """
    Registered user of the digital bank.

    ``password_hash`` holds the bcrypt digest, never the plaintext, and is
    left out of every API response. ``has_bank_account`` marks an active
    linked financial account; such users cannot be deleted.
    """
    id: str
    email: str
    first_name: str
    last_name: str
    password_hash: str
    created_at: datetime
    updated_at: datetime
    phone_number: Optional[str] = None
    address: Optional[str] = None
    date_of_birth: Optional[datetime] = None
    has_bank_account: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage"""
        result = asdict(self)
        result['created_at'] = to_iso(self.created_at)
        result['updated_at'] = to_iso(self.updated_at)
        result['date_of_birth'] = to_iso(self.date_of_birth)
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'User':
        """Create instance from a storage dictionary"""
        data = dict(data)
        for key in ('created_at', 'updated_at', 'date_of_birth'):
            if isinstance(data.get(key), str):
                data[key] = from_iso(data[key])
        data['has_bank_account'] = bool(data.get('has_bank_account', False))
        return cls(**data)

    def to_public_dict(self) -> Dict[str, Any]:
        """JSON view returned by the API; never includes the password digest"""
        return {
            "id": self.id,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "phoneNumber": self.phone_number,
            "address": self.address,
            "dateOfBirth": to_iso(self.date_of_birth),
            "hasBankAccount": self.has_bank_account,
            "createdAt": to_iso(self.created_at),
            "updatedAt": to_iso(self.updated_at),
        }


@dataclass(frozen=True)
class UserUpdate:
    """
    Partial profile update with explicit per-field presence.

    Only attributes named in ``fields_set`` are applied; the rest of the
    user record is left untouched.
    """
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone_number: Optional[str] = None
    address: Optional[str] = None
    date_of_birth: Optional[datetime] = None
    fields_set: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def from_request(cls, request: ProfileUpdateRequest) -> 'UserUpdate':
        return cls(
            first_name=request.first_name,
            last_name=request.last_name,
            phone_number=request.phone_number,
            address=request.address,
            date_of_birth=request.date_of_birth_value,
            fields_set=frozenset(request.model_fields_set & set(UPDATABLE_FIELDS)),
        )

    @property
    def is_empty(self) -> bool:
        return not self.fields_set

    def apply_to(self, user: User, now: Optional[datetime] = None) -> User:
        """Overwrite the present fields on ``user`` and bump ``updated_at``"""
        if self.is_empty:
            return user

        for name in UPDATABLE_FIELDS:
            if name in self.fields_set:
                setattr(user, name, getattr(self, name))

        user.updated_at = now or datetime.now(timezone.utc)
        return user
