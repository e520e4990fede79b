"""Tests for configuration models and loading."""

import pytest
from pydantic import ValidationError

from keyservice.config import (
    KeyServiceConfig,
    ServiceName,
    StoreLocation,
    load_config,
)
from keyservice.constants import PrincipalType
from keyservice.exceptions import ConfigurationError


class TestDefaults:

    def test_every_service_present(self):
        config = KeyServiceConfig()
        assert set(config.services) == set(ServiceName)
        assert config.services[ServiceName.HOOKS].address == "https://hooks-service.k8sdeploy"
        assert config.services[ServiceName.PERMISSION].address == (
            "https://permissions-service.k8sdeploy"
        )
        assert config.service_key(ServiceName.HOOKS) == ""

    def test_ports_and_backend(self):
        config = KeyServiceConfig()
        assert config.http_port == 3000
        assert config.grpc_port == 8001
        assert config.store.backend == "memory"
        assert config.development is False

    def test_locations_per_type(self):
        config = KeyServiceConfig()
        assert config.locations.bundle == StoreLocation(database="keys", collection="keys")
        assert config.locations.for_type(PrincipalType.HOOKS).database == "hooks"
        assert config.locations.for_type(PrincipalType.AGENT).database == "agents"
        assert config.locations.for_type(PrincipalType.USER).database == "users"

    def test_partial_services_keep_default_addresses(self):
        config = KeyServiceConfig(services={"hooks": {"key": "k"}})
        assert config.service_key(ServiceName.HOOKS) == "k"
        assert config.services[ServiceName.HOOKS].address == "https://hooks-service.k8sdeploy"
        assert ServiceName.BILLING in config.services

    def test_frozen(self):
        config = KeyServiceConfig()
        with pytest.raises(ValidationError):
            config.http_port = 1


class TestLoadConfig:

    def test_environment_overrides(self):
        config = load_config(
            environ={
                "HOOKS_SERVICE_KEY": "hooks-secret",
                "ORCHESTRATOR_KEY": "orch-secret",
                "BILLING_SERVICE_ADDRESS": "https://billing.internal",
                "HTTP_PORT": "4000",
                "DEVELOPMENT": "true",
                "KEYSERVICE_STORE_BACKEND": "redis",
                "KEYSERVICE_REDIS_URL": "redis://cache:6379/2",
            }
        )
        assert config.service_key(ServiceName.HOOKS) == "hooks-secret"
        assert config.service_key(ServiceName.ORCHESTRATOR) == "orch-secret"
        assert config.services[ServiceName.BILLING].address == "https://billing.internal"
        assert config.http_port == 4000
        assert config.development is True
        assert config.store.backend == "redis"
        assert config.store.redis_url == "redis://cache:6379/2"

    def test_yaml_file_then_environment(self, tmp_path):
        path = tmp_path / "keyservice.yaml"
        path.write_text(
            "services:\n"
            "  hooks:\n"
            "    key: from-file\n"
            "  orchestrator:\n"
            "    key: orch-from-file\n"
            "locations:\n"
            "  hooks:\n"
            "    database: integrations\n"
            "    collection: hook_keys\n"
            "grpc_port: 9001\n"
        )
        config = load_config(path, environ={"HOOKS_SERVICE_KEY": "from-env"})
        assert config.service_key(ServiceName.HOOKS) == "from-env"
        assert config.service_key(ServiceName.ORCHESTRATOR) == "orch-from-file"
        assert config.locations.hooks.collection == "hook_keys"
        assert config.grpc_port == 9001

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_config(tmp_path / "absent.yaml", environ={})

    def test_invalid_values_raise(self):
        with pytest.raises(ConfigurationError):
            load_config(environ={"HTTP_PORT": "not-a-port"})

    def test_non_mapping_file_raises(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError):
            load_config(path, environ={})


class TestValidation:

    def test_shared_partition_rejected(self):
        with pytest.raises(ValidationError, match="share keys/keys"):
            KeyServiceConfig(locations={"user": {"database": "keys", "collection": "keys"}})

    def test_pair_partitions_must_differ(self):
        with pytest.raises(ValidationError):
            KeyServiceConfig(
                locations={
                    "hooks": {"database": "shared"},
                    "agent": {"database": "shared"},
                }
            )

    def test_same_database_other_collection_allowed(self):
        config = KeyServiceConfig(
            locations={"user": {"database": "keys", "collection": "user_keys"}}
        )
        assert config.locations.user.collection == "user_keys"

    def test_shared_partition_in_file_raises(self, tmp_path):
        path = tmp_path / "keyservice.yaml"
        path.write_text(
            "locations:\n"
            "  bundle:\n"
            "    database: hooks\n"
        )
        with pytest.raises(ConfigurationError, match="share hooks/keys"):
            load_config(path, environ={})

    def test_log_level_case_insensitive(self, tmp_path):
        path = tmp_path / "keyservice.yaml"
        path.write_text("log_level: debug\n")
        assert load_config(path, environ={}).log_level == "DEBUG"

    def test_unknown_log_level_rejected(self):
        with pytest.raises(ConfigurationError):
            load_config(environ={"LOG_LEVEL": "verbose"})
