"""Tests for configuration settings.

Tests the Config class and environment variable handling.
"""

import os
import pytest
from pathlib import Path
from unittest.mock import patch

from authshield.common.config.settings import (
    Config,
    Environment,
    LogLevel,
    StorageType,
    get_config,
    reset_config,
)


class TestEnvironment:
    """Tests for Environment enum."""
    
    def test_environment_values(self):
        assert Environment.DEVELOPMENT.value == "development"
        assert Environment.STAGING.value == "staging"
        assert Environment.PRODUCTION.value == "production"


class TestStorageType:
    """Tests for StorageType enum."""
    
    def test_storage_type_values(self):
        assert StorageType.MEMORY.value == "memory"
        assert StorageType.FILE.value == "file"
        assert StorageType.DYNAMODB.value == "dynamodb"


class TestConfig:
    """Tests for Config class."""
    
    def test_default_config(self):
        """Test Config with default values."""
        reset_config()
        
        with patch.dict(os.environ, {}, clear=True):
            config = Config()
            
            assert config.environment == Environment.DEVELOPMENT
            assert config.debug is False
            assert config.log_level == LogLevel.INFO
            assert config.api_host == "0.0.0.0"
            assert config.api_port == 8000
            assert config.storage_type == StorageType.FILE
            assert config.state_dir == Path("./data/state")
            assert config.event_log_path is None
            assert config.policy_file == config.config_dir / "defense_policy.yaml"
    
    def test_policy_file_from_env_var(self):
        with patch.dict(os.environ, {"AUTHSHIELD_POLICY_FILE": "/etc/authshield/policy.yaml"}, clear=False):
            assert Config().policy_file == Path("/etc/authshield/policy.yaml")
    
    def test_environment_from_env_var(self):
        with patch.dict(os.environ, {"AUTHSHIELD_ENVIRONMENT": "staging"}, clear=False):
            assert Config().environment == Environment.STAGING
    
    def test_debug_mode(self):
        with patch.dict(os.environ, {"AUTHSHIELD_DEBUG": "true"}, clear=False):
            assert Config().debug is True
        
        with patch.dict(os.environ, {"AUTHSHIELD_DEBUG": "false"}, clear=False):
            assert Config().debug is False
    
    def test_api_config(self):
        with patch.dict(os.environ, {
            "AUTHSHIELD_API_HOST": "127.0.0.1",
            "AUTHSHIELD_API_PORT": "9000"
        }, clear=False):
            config = Config()
            assert config.api_host == "127.0.0.1"
            assert config.api_port == 9000
    
    def test_file_storage(self):
        with patch.dict(os.environ, {
            "AUTHSHIELD_STORAGE_TYPE": "file",
            "AUTHSHIELD_STATE_DIR": "/tmp/authshield-state"
        }, clear=False):
            config = Config()
            assert config.storage_type == StorageType.FILE
            assert config.state_dir == Path("/tmp/authshield-state")
    
    def test_dynamodb_storage_requires_table(self):
        """DynamoDB storage without a table name is rejected."""
        with patch.dict(os.environ, {"AUTHSHIELD_STORAGE_TYPE": "dynamodb"}, clear=False):
            os.environ.pop("AUTHSHIELD_DYNAMODB_TABLE", None)
            
            with pytest.raises(ValueError, match="AUTHSHIELD_DYNAMODB_TABLE"):
                Config()
    
    def test_dynamodb_storage_with_table(self):
        with patch.dict(os.environ, {
            "AUTHSHIELD_STORAGE_TYPE": "dynamodb",
            "AUTHSHIELD_DYNAMODB_TABLE": "authshield-state",
            "AWS_DEFAULT_REGION": "eu-west-1",
        }, clear=False):
            config = Config()
            assert config.dynamodb_table == "authshield-state"
            assert config.aws_region == "eu-west-1"
    
    def test_memory_storage_in_production_warns(self):
        with patch.dict(os.environ, {
            "AUTHSHIELD_ENVIRONMENT": "production",
            "AUTHSHIELD_STORAGE_TYPE": "memory",
        }, clear=False):
            with pytest.warns(RuntimeWarning, match="In-memory state storage"):
                Config()
    
    def test_event_log_path(self):
        with patch.dict(os.environ, {"AUTHSHIELD_EVENT_LOG": "/var/log/authshield/events.jsonl"}, clear=False):
            assert Config().event_log_path == Path("/var/log/authshield/events.jsonl")
    
    def test_invalid_storage_type(self):
        with patch.dict(os.environ, {"AUTHSHIELD_STORAGE_TYPE": "redis"}, clear=False):
            with pytest.raises(ValueError):
                Config()
    
    def test_is_production(self):
        with patch.dict(os.environ, {"AUTHSHIELD_ENVIRONMENT": "production"}, clear=False):
            config = Config()
            assert config.is_production is True
            assert config.is_development is False
    
    def test_config_dir_property(self):
        config = Config()
        assert config.config_dir == config.project_root / "config"


class TestGetConfig:
    """Tests for get_config singleton function."""
    
    def test_get_config_returns_same_instance(self):
        reset_config()
        assert get_config() is get_config()
    
    def test_reset_config_creates_new_instance(self):
        reset_config()
        config1 = get_config()
        reset_config()
        assert get_config() is not config1
