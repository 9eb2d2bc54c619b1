"""
User Storage Module

Provides the abstract user store interface and implementations for in-memory
(testing) and SQLite (persistence). Email uniqueness is enforced here, at the
storage layer: the second of two racing inserts for the same email fails with
DuplicateEmailError.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Union
import sqlite3
import threading
from pathlib import Path

from .encryption import EncryptionProvider, FieldEncryptor
from .errors import ConfigurationError, DuplicateEmailError, UserNotFoundError
from .users import User


USER_COLUMNS = (
    "id", "email", "first_name", "last_name", "phone_number", "address",
    "date_of_birth", "password_hash", "has_bank_account", "created_at", "updated_at",
)


class UserStore(ABC):
    """Abstract interface for user persistence backends"""

    def __init__(self, encryption_provider: Optional[EncryptionProvider] = None):
        self._encryptor = FieldEncryptor(encryption_provider) if encryption_provider else None

    @abstractmethod
    def create(self, user: User) -> User:
        """
        Insert a new user.

        Raises:
            DuplicateEmailError: if another user already has this email
        """
        pass

    @abstractmethod
    def find_by_id(self, user_id: str) -> Optional[User]:
        """Load a user by id"""
        pass

    @abstractmethod
    def find_by_email(self, email: str) -> Optional[User]:
        """Load a user by exact (case-sensitive) email"""
        pass

    @abstractmethod
    def update(self, user: User) -> User:
        """
        Persist changes to an existing user.

        Raises:
            UserNotFoundError: if the user no longer exists
        """
        pass

    @abstractmethod
    def delete(self, user_id: str) -> bool:
        """Delete a user, returning whether a record was removed"""
        pass

    @abstractmethod
    def count(self) -> int:
        """Count stored users"""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close storage connection"""
        pass

    def _to_row(self, user: User) -> Dict[str, Any]:
        row = user.to_dict()
        if self._encryptor:
            row = self._encryptor.encrypt_row(row)
        return row

    def _from_row(self, row: Dict[str, Any]) -> User:
        if self._encryptor:
            row = self._encryptor.decrypt_row(row)
        return User.from_dict(row)


class InMemoryUserStore(UserStore):
    """In-memory user store for testing"""

    def __init__(self, encryption_provider: Optional[EncryptionProvider] = None):
        super().__init__(encryption_provider)
        self._rows: Dict[str, Dict[str, Any]] = {}
        self._email_index: Dict[str, str] = {}
        self._lock = threading.RLock()

    def create(self, user: User) -> User:
        with self._lock:
            if user.email in self._email_index:
                raise DuplicateEmailError(user.email)
            self._rows[user.id] = self._to_row(user)
            self._email_index[user.email] = user.id
            return user

    def find_by_id(self, user_id: str) -> Optional[User]:
        with self._lock:
            row = self._rows.get(user_id)
            if row:
                return self._from_row(row)
            return None

    def find_by_email(self, email: str) -> Optional[User]:
        with self._lock:
            user_id = self._email_index.get(email)
            if user_id is None:
                return None
            return self.find_by_id(user_id)

    def update(self, user: User) -> User:
        with self._lock:
            if user.id not in self._rows:
                raise UserNotFoundError(user.id)
            self._rows[user.id] = self._to_row(user)
            return user

    def delete(self, user_id: str) -> bool:
        with self._lock:
            row = self._rows.pop(user_id, None)
            if row is None:
                return False
            self._email_index.pop(row['email'], None)
            return True

    def count(self) -> int:
        with self._lock:
            return len(self._rows)

    def close(self) -> None:
        """Close storage (no-op for in-memory)"""
        pass

    def get_raw_row(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Stored row as persisted, for debugging/inspection"""
        with self._lock:
            row = self._rows.get(user_id)
            return dict(row) if row else None


class SQLiteUserStore(UserStore):
    """SQLite user store for persistence"""

    def __init__(self, db_path: Union[str, Path] = ":memory:",
                 encryption_provider: Optional[EncryptionProvider] = None):
        super().__init__(encryption_provider)
        self.db_path = str(db_path)
        self._connection = sqlite3.connect(self.db_path, check_same_thread=False)
        self._connection.row_factory = sqlite3.Row
        self._lock = threading.RLock()

        with self._lock:
            # Enable WAL mode for better concurrent access
            if self.db_path != ":memory:":
                self._connection.execute("PRAGMA journal_mode = WAL")
                self._connection.execute("PRAGMA synchronous = NORMAL")
            self._ensure_schema()

    def _ensure_schema(self) -> None:
        """Create the users table if it does not exist"""
        self._connection.execute("""
            CREATE TABLE IF NOT EXISTS users (
                id TEXT PRIMARY KEY,
                email TEXT NOT NULL UNIQUE,
                first_name TEXT NOT NULL,
                last_name TEXT NOT NULL,
                phone_number TEXT,
                address TEXT,
                date_of_birth TEXT,
                password_hash TEXT NOT NULL,
                has_bank_account INTEGER NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)
        self._connection.commit()

    def _row_values(self, user: User) -> List[Any]:
        row = self._to_row(user)
        row['has_bank_account'] = int(bool(row['has_bank_account']))
        return [row[column] for column in USER_COLUMNS]

    def _load_one(self, where: str, value: str) -> Optional[User]:
        with self._lock:
            cursor = self._connection.execute(
                f"SELECT {', '.join(USER_COLUMNS)} FROM users WHERE {where} = ?", (value,)
            )
            row = cursor.fetchone()
            if row:
                return self._from_row(dict(row))
            return None

    def create(self, user: User) -> User:
        placeholders = ", ".join("?" for _ in USER_COLUMNS)
        with self._lock:
            try:
                self._connection.execute(
                    f"INSERT INTO users ({', '.join(USER_COLUMNS)}) VALUES ({placeholders})",
                    self._row_values(user),
                )
                self._connection.commit()
            except sqlite3.IntegrityError as e:
                self._connection.rollback()
                if "users.email" in str(e):
                    raise DuplicateEmailError(user.email) from e
                raise
        return user

    def find_by_id(self, user_id: str) -> Optional[User]:
        return self._load_one("id", user_id)

    def find_by_email(self, email: str) -> Optional[User]:
        return self._load_one("email", email)

    def update(self, user: User) -> User:
        values = self._row_values(user)
        assignments = ", ".join(f"{column} = ?" for column in USER_COLUMNS[1:])
        with self._lock:
            cursor = self._connection.execute(
                f"UPDATE users SET {assignments} WHERE id = ?", values[1:] + [values[0]]
            )
            self._connection.commit()
            if cursor.rowcount == 0:
                raise UserNotFoundError(user.id)
        return user

    def delete(self, user_id: str) -> bool:
        with self._lock:
            cursor = self._connection.execute("DELETE FROM users WHERE id = ?", (user_id,))
            self._connection.commit()
            return cursor.rowcount > 0

    def count(self) -> int:
        with self._lock:
            cursor = self._connection.execute("SELECT COUNT(*) AS count FROM users")
            return cursor.fetchone()['count']

    def close(self) -> None:
        """Close SQLite connection"""
        with self._lock:
            if self._connection:
                self._connection.close()
                self._connection = None


def create_user_store(database_url: str,
                      encryption_provider: Optional[EncryptionProvider] = None) -> UserStore:
    """
    Build a user store from a connection string.

    Supported forms:
        memory://                 in-memory store
        sqlite://, sqlite://:memory:, sqlite:///:memory:   in-memory SQLite
        sqlite:///relative/path.db, sqlite:////absolute/path.db

    Raises:
        ConfigurationError: for unsupported connection strings
    """
    if database_url == "memory://":
        return InMemoryUserStore(encryption_provider)

    if database_url.startswith("sqlite://"):
        path = database_url[len("sqlite://"):]
        if path in ("", ":memory:", "/", "/:memory:"):
            return SQLiteUserStore(":memory:", encryption_provider)
        if not path.startswith("/"):
            raise ConfigurationError(f"Invalid SQLite URL: {database_url}")
        return SQLiteUserStore(path[1:], encryption_provider)

    raise ConfigurationError(f"Unsupported database URL: {database_url}")
