"""Tests for the service key allow-list."""

import hmac

from conftest import COMPANY_SERVICE_KEY, HOOKS_KEY, ORCHESTRATOR_KEY, USER_SERVICE_KEY

from keyservice.config import KeyServiceConfig
from keyservice.identity import gate
from keyservice.identity.gate import ServiceKeyGate


class TestServiceKeyGate:

    def test_hooks_key_allowed(self, config):
        assert ServiceKeyGate(config).authorize(HOOKS_KEY) is True

    def test_orchestrator_key_allowed(self, config):
        assert ServiceKeyGate(config).authorize(ORCHESTRATOR_KEY) is True

    def test_other_service_keys_rejected(self, config):
        gate = ServiceKeyGate(config)
        assert gate.authorize(USER_SERVICE_KEY) is False
        assert gate.authorize(COMPANY_SERVICE_KEY) is False

    def test_empty_key_rejected(self, config):
        assert ServiceKeyGate(config).authorize("") is False

    def test_near_miss_rejected(self, config):
        gate = ServiceKeyGate(config)
        assert gate.authorize(HOOKS_KEY.upper()) is False
        assert gate.authorize(HOOKS_KEY + " ") is False

    def test_unset_keys_never_authorize_empty_input(self):
        gate = ServiceKeyGate(KeyServiceConfig())
        assert gate.authorize("") is False
        assert gate.authorize("anything") is False

    def test_non_ascii_key_rejected(self, config):
        assert ServiceKeyGate(config).authorize("clé-de-service") is False

    def test_compares_every_allowed_key(self, config, monkeypatch):
        compared = []
        real = hmac.compare_digest

        def recording(a, b):
            compared.append(b)
            return real(a, b)

        monkeypatch.setattr(gate.hmac, "compare_digest", recording)
        assert ServiceKeyGate(config).authorize(HOOKS_KEY) is True
        assert sorted(compared) == sorted([HOOKS_KEY.encode(), ORCHESTRATOR_KEY.encode()])
