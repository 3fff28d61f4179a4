import pytest

from impel.config import Config, get_config, get_db_config
from impel.contract import ContractHost
from impel.database import KeyedStore, MemoryBackend

OWNER = bytes.fromhex("11" * 20)
ALICE = bytes.fromhex("a1" * 20)
BOB = bytes.fromhex("b0" * 20)


@pytest.fixture(autouse=True)
def _env_isolation(tmp_path, monkeypatch):
    """Point file storage and logs at a temp dir and drop cached settings."""
    monkeypatch.setenv("IMPEL_DB_STORAGE_PATH", str(tmp_path / "data" / "impel.json"))
    monkeypatch.setenv("IMPEL_LOGS_DIR", str(tmp_path / "logs"))
    get_config.cache_clear()
    get_db_config.cache_clear()
    yield
    get_config.cache_clear()
    get_db_config.cache_clear()


@pytest.fixture
def config():
    return Config()


@pytest.fixture
def backend():
    return MemoryBackend()


@pytest.fixture
def store(backend):
    return KeyedStore(backend)


@pytest.fixture
def host(backend, config):
    return ContractHost(backend, config)


@pytest.fixture
def deployed_host(host):
    host.deploy(OWNER)
    return host


@pytest.fixture
def owner():
    return OWNER


@pytest.fixture
def alice():
    return ALICE


@pytest.fixture
def bob():
    return BOB
