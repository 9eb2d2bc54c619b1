"""
Tests for configuration and application wiring
"""

import logging

import pytest

from digital_bank.api import create_app
from digital_bank.api.auth import DigitalBank
from digital_bank.config import (
    DEFAULT_JWT_SECRET, DigitalBankConfig, check_security, get_config, reload_config
)
from digital_bank.encryption import ENCRYPTION_PREFIX
from digital_bank.errors import ConfigurationError
from digital_bank.storage import InMemoryUserStore, SQLiteUserStore


SECRET = "test-signing-secret-0123456789abcdef"


class TestDigitalBankConfig:
    """Test settings defaults and environment overrides"""
    
    def test_defaults(self):
        config = DigitalBankConfig(_env_file=None)
        assert config.jwt_expiry_hours == 24
        assert config.jwt_algorithm == "HS256"
        assert config.bcrypt_rounds == 12
        assert config.encryption_enabled is False
    
    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("JWT_SECRET", SECRET)
        monkeypatch.setenv("DATABASE_URL", "memory://")
        monkeypatch.setenv("BCRYPT_ROUNDS", "10")
        
        config = DigitalBankConfig(_env_file=None)
        
        assert config.jwt_secret == SECRET
        assert config.database_url == "memory://"
        assert config.bcrypt_rounds == 10
        assert config.uses_default_secret is False
    
    def test_reload_config(self, monkeypatch):
        monkeypatch.setenv("API_PORT", "9100")
        try:
            assert reload_config().api_port == 9100
            assert get_config().api_port == 9100
        finally:
            monkeypatch.delenv("API_PORT")
            reload_config()
    
    @pytest.mark.parametrize("secret", [DEFAULT_JWT_SECRET, ""])
    def test_uses_default_secret(self, secret):
        assert DigitalBankConfig(jwt_secret=secret, _env_file=None).uses_default_secret is True


class TestCheckSecurity:
    """Test startup security checks"""
    
    def test_fallback_secret_warns(self, caplog):
        config = DigitalBankConfig(jwt_secret=DEFAULT_JWT_SECRET, _env_file=None)
        with caplog.at_level(logging.WARNING, logger="digital_bank.config"):
            check_security(config)
        assert "JWT_SECRET is not set" in caplog.text
    
    def test_fallback_secret_refused_when_required(self):
        config = DigitalBankConfig(
            jwt_secret=DEFAULT_JWT_SECRET, require_jwt_secret=True, _env_file=None
        )
        with pytest.raises(ConfigurationError):
            check_security(config)
    
    def test_explicit_secret_passes(self, caplog):
        config = DigitalBankConfig(jwt_secret=SECRET, require_jwt_secret=True, _env_file=None)
        with caplog.at_level(logging.WARNING, logger="digital_bank.config"):
            check_security(config)
        assert "JWT_SECRET" not in caplog.text
    
    def test_encryption_without_key(self):
        config = DigitalBankConfig(jwt_secret=SECRET, encryption_enabled=True, _env_file=None)
        with pytest.raises(ConfigurationError):
            check_security(config)


class TestDigitalBankWiring:
    """Test service construction from configuration"""
    
    def test_store_selected_from_database_url(self):
        bank = DigitalBank(DigitalBankConfig(
            jwt_secret=SECRET, database_url="sqlite:///:memory:", _env_file=None
        ))
        assert isinstance(bank.store, SQLiteUserStore)
        assert bank.hasher.rounds == 12
        bank.close()
    
    def test_encryption_enabled(self):
        bank = DigitalBank(DigitalBankConfig(
            jwt_secret=SECRET,
            database_url="memory://",
            bcrypt_rounds=4,
            encryption_enabled=True,
            encryption_master_key="test-master-key",
            _env_file=None,
        ))
        assert isinstance(bank.store, InMemoryUserStore)
        
        user = bank.accounts.register({
            "email": "test@example.com",
            "firstName": "John",
            "lastName": "Doe",
            "address": "123 Main St",
            "password": "password123",
        })["user"]
        
        row = bank.store.get_raw_row(user["id"])
        assert row["address"].startswith(ENCRYPTION_PREFIX)
        assert row["email"] == "test@example.com"
        assert user["address"] == "123 Main St"
    
    def test_create_app_refuses_unsafe_config(self):
        config = DigitalBankConfig(
            jwt_secret=DEFAULT_JWT_SECRET, require_jwt_secret=True,
            database_url="memory://", _env_file=None
        )
        with pytest.raises(ConfigurationError):
            create_app(config)
    
    def test_create_app_from_config(self):
        config = DigitalBankConfig(jwt_secret=SECRET, database_url="memory://", _env_file=None)
        app = create_app(config)
        
        assert isinstance(app.state.bank.store, InMemoryUserStore)
        paths = {route.path for route in app.routes}
        assert "/api/v1/auth/login" in paths
        assert "/api/v1/users" in paths
        assert "/api/v1/users/{user_id}" in paths
