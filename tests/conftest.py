# tests/conftest.py
import pytest

from checadoc.config.settings import RegistrySource
from checadoc.database.kv_store import InMemoryKeyValueStore
from checadoc.database.repositories.verification_repository import VerificationRepository
from checadoc.rules.decision_rules import DecisionRules
from checadoc.rules.institution.matcher import InstitutionMatcher
from tests.mocks import PRIMARY_HOST, SECONDARY_HOST


@pytest.fixture
def cpf_sources():
    return [
        RegistrySource(name="proxy_a", url_template=f"http://{PRIMARY_HOST}/cpf/{{cpf}}", timeout=0.5),
        RegistrySource(name="proxy_b", url_template=f"http://{SECONDARY_HOST}/cpf/{{cpf}}", timeout=0.5),
    ]


@pytest.fixture
def matcher():
    return InstitutionMatcher()


@pytest.fixture
def decision_rules():
    return DecisionRules()


@pytest.fixture
def memory_store():
    return InMemoryKeyValueStore()


@pytest.fixture
def repository(memory_store):
    return VerificationRepository(memory_store, key_prefix="checadoc:ver:")
