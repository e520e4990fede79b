"""Shared fixtures for key service tests."""

import pytest

from keyservice.config import KeyServiceConfig
from keyservice.services.credential_service import CredentialService
from keyservice.storage import MemoryPrincipalStore

HOOKS_KEY = "hooks-service-key"
ORCHESTRATOR_KEY = "orchestrator-key"
USER_SERVICE_KEY = "user-service-key"
COMPANY_SERVICE_KEY = "company-service-key"

START_TIME = 1_700_000_000


class FakeClock:
    """Settable unix clock."""

    def __init__(self, now: int = START_TIME) -> None:
        self.now = now

    def __call__(self) -> float:
        return float(self.now)

    def advance(self, seconds: int) -> None:
        self.now += seconds


@pytest.fixture
def config() -> KeyServiceConfig:
    return KeyServiceConfig(
        services={
            "hooks": {"key": HOOKS_KEY},
            "orchestrator": {"key": ORCHESTRATOR_KEY},
            "user": {"key": USER_SERVICE_KEY},
            "company": {"key": COMPANY_SERVICE_KEY},
            "billing": {"key": "billing-service-key"},
            "permission": {"key": "permission-service-key"},
        }
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_store(config, clock) -> MemoryPrincipalStore:
    return MemoryPrincipalStore(locations=config.locations, clock=clock)


@pytest.fixture
def service(config, memory_store) -> CredentialService:
    return CredentialService(config, memory_store)
