"""
Tests for request validation schemas
"""

from datetime import datetime, timezone

import pytest

from digital_bank.validation import (
    LoginRequest, ProfileUpdateRequest, RegistrationRequest, UserIdParam,
    RequestValidationFailed, ValidationIssue, format_issues, validate_payload,
)


VALID_REGISTRATION = {
    "email": "test@example.com",
    "firstName": "John",
    "lastName": "Doe",
    "phoneNumber": "+1234567890",
    "address": "123 Main St",
    "dateOfBirth": "1990-01-01T00:00:00.000Z",
    "password": "password123",
}


def issues_for(schema, payload):
    """Run validation expecting failure and return the collected issues"""
    with pytest.raises(RequestValidationFailed) as exc_info:
        validate_payload(schema, payload)
    return exc_info.value.issues


def messages_for(schema, payload):
    return [issue.message for issue in issues_for(schema, payload)]


class TestRegistrationSchema:
    """Test registration payload rules"""
    
    def test_valid_payload(self):
        request = validate_payload(RegistrationRequest, VALID_REGISTRATION)
        assert request.email == "test@example.com"
        assert request.first_name == "John"
        assert request.last_name == "Doe"
        assert request.date_of_birth_value == datetime(1990, 1, 1, tzinfo=timezone.utc)
    
    def test_minimal_payload(self):
        """Only email, names and password are required"""
        request = validate_payload(RegistrationRequest, {
            "email": "test@example.com",
            "firstName": "John",
            "lastName": "Doe",
            "password": "password123",
        })
        assert request.phone_number is None
        assert request.address is None
        assert request.date_of_birth_value is None
    
    def test_invalid_email(self):
        payload = dict(VALID_REGISTRATION, email="invalid-email")
        assert issues_for(RegistrationRequest, payload) == [
            ValidationIssue(path="email", message="Invalid email address")
        ]
    
    def test_empty_first_name(self):
        payload = dict(VALID_REGISTRATION, firstName="")
        assert issues_for(RegistrationRequest, payload) == [
            ValidationIssue(path="firstName", message="First name is required")
        ]
    
    def test_empty_last_name(self):
        payload = dict(VALID_REGISTRATION, lastName="")
        assert messages_for(RegistrationRequest, payload) == ["Last name is required"]
    
    def test_short_password(self):
        payload = dict(VALID_REGISTRATION, password="123")
        assert messages_for(RegistrationRequest, payload) == [
            "Password must be at least 8 characters long"
        ]
    
    def test_name_too_long(self):
        payload = dict(VALID_REGISTRATION, firstName="a" * 101)
        assert messages_for(RegistrationRequest, payload) == [
            "First name must be at most 100 characters"
        ]
    
    def test_name_at_limit(self):
        payload = dict(VALID_REGISTRATION, firstName="a" * 100)
        assert validate_payload(RegistrationRequest, payload).first_name == "a" * 100
    
    @pytest.mark.parametrize("value", [
        "1990-01-01",
        "1990-01-01T00:00:00",
        "1990-01-01T00:00:00+02:00",
        "1990-02-30T00:00:00Z",
        "yesterday",
    ])
    def test_date_of_birth_requires_full_timestamp(self, value):
        payload = dict(VALID_REGISTRATION, dateOfBirth=value)
        assert issues_for(RegistrationRequest, payload) == [
            ValidationIssue(path="dateOfBirth", message="Invalid datetime")
        ]
    
    @pytest.mark.parametrize("value, microsecond", [
        ("1990-01-01T00:00:00Z", 0),
        ("1990-01-01T00:00:00.1Z", 100000),
        ("1990-01-01T00:00:00.1234Z", 123400),
        ("1990-01-01T00:00:00.123456Z", 123456),
        ("1990-01-01T00:00:00.1234567Z", 123456),
    ])
    def test_date_of_birth_fraction_precision(self, value, microsecond):
        """Any number of fractional second digits is accepted"""
        request = validate_payload(RegistrationRequest, dict(VALID_REGISTRATION, dateOfBirth=value))
        assert request.date_of_birth == value
        assert request.date_of_birth_value == datetime(
            1990, 1, 1, 0, 0, 0, microsecond, tzinfo=timezone.utc
        )

    def test_all_violations_collected_in_field_order(self):
        """Validation does not stop at the first failing field"""
        payload = {
            "email": "bad",
            "firstName": "",
            "lastName": "",
            "password": "1",
        }
        assert messages_for(RegistrationRequest, payload) == [
            "Invalid email address",
            "First name is required",
            "Last name is required",
            "Password must be at least 8 characters long",
        ]
    
    def test_missing_fields(self):
        assert messages_for(RegistrationRequest, {}) == [
            "Email is required",
            "First name is required",
            "Last name is required",
            "Password is required",
        ]
    
    def test_wrong_type(self):
        payload = dict(VALID_REGISTRATION, phoneNumber=5551234)
        assert messages_for(RegistrationRequest, payload) == ["Phone number must be a string"]


class TestProfileUpdateSchema:
    """Test partial update payload rules"""
    
    def test_empty_object_is_valid(self):
        request = validate_payload(ProfileUpdateRequest, {})
        assert request.model_fields_set == set()
    
    def test_partial_update_tracks_presence(self):
        request = validate_payload(ProfileUpdateRequest, {"firstName": "Jane", "address": None})
        assert request.model_fields_set == {"first_name", "address"}
        assert request.first_name == "Jane"
        assert request.address is None
    
    def test_full_update(self):
        request = validate_payload(ProfileUpdateRequest, {
            "firstName": "Jane",
            "lastName": "Smith",
            "phoneNumber": "+1987654321",
            "address": "456 Oak Ave",
            "dateOfBirth": "1985-05-15T00:00:00.000Z",
        })
        assert request.date_of_birth_value == datetime(1985, 5, 15, tzinfo=timezone.utc)
    
    def test_empty_first_name_rejected(self):
        assert messages_for(ProfileUpdateRequest, {"firstName": ""}) == ["First name is required"]
    
    def test_empty_last_name_rejected(self):
        assert messages_for(ProfileUpdateRequest, {"lastName": ""}) == ["Last name is required"]
    
    def test_null_name_rejected(self):
        assert messages_for(ProfileUpdateRequest, {"firstName": None}) == ["First name must be a string"]
    
    def test_password_is_not_accepted(self):
        """Unknown keys such as password are dropped, never applied"""
        request = validate_payload(ProfileUpdateRequest, {"password": "new-password"})
        assert request.model_fields_set == set()
        assert not hasattr(request, "password")
    
    def test_invalid_date_of_birth(self):
        assert messages_for(ProfileUpdateRequest, {"dateOfBirth": "not-a-date"}) == ["Invalid datetime"]


class TestLoginSchema:
    """Test login payload rules"""
    
    def test_valid_login(self):
        request = validate_payload(LoginRequest, {"email": "test@example.com", "password": "x"})
        assert request.password == "x"
    
    def test_short_password_allowed(self):
        """Login only checks presence, not length"""
        request = validate_payload(LoginRequest, {"email": "test@example.com", "password": "abc"})
        assert request.password == "abc"
    
    def test_empty_password(self):
        payload = {"email": "test@example.com", "password": ""}
        assert messages_for(LoginRequest, payload) == ["Password is required"]
    
    def test_invalid_email(self):
        payload = {"email": "invalid-email", "password": "password123"}
        assert messages_for(LoginRequest, payload) == ["Invalid email address"]


class TestUserIdParam:
    """Test route identifier rule"""
    
    def test_valid_id(self):
        assert validate_payload(UserIdParam, {"userId": "user-123"}).user_id == "user-123"
    
    def test_empty_id(self):
        assert messages_for(UserIdParam, {"userId": ""}) == ["User ID is required"]


class TestPayloadShape:
    """Test non-object payloads and message formatting"""
    
    @pytest.mark.parametrize("payload", [None, [], "text", 42])
    def test_non_object_payload(self, payload):
        assert messages_for(LoginRequest, payload) == ["Request body must be a JSON object"]
    
    def test_format_issues_joins_messages(self):
        issues = [
            ValidationIssue(path="email", message="Invalid email address"),
            ValidationIssue(path="password", message="Password is required"),
        ]
        assert format_issues(issues) == "Validation error: Invalid email address, Password is required"
    
    def test_exception_message_is_formatted(self):
        with pytest.raises(RequestValidationFailed) as exc_info:
            validate_payload(LoginRequest, {"email": "bad", "password": ""})
        assert str(exc_info.value) == "Validation error: Invalid email address, Password is required"
