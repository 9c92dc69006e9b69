"""
Pytest fixtures for Nestera tests. Uses a temporary SQLite ledger store per test,
a manual clock and a recording authorizer.
"""

from __future__ import annotations

import pytest
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from nestera.config.settings import Settings
from nestera.database.store import LedgerStore
from nestera.host import Env, ManualClock, MockAuthorizer
from nestera.ledger.contract import NesteraContract

# Deterministic Ed25519 seeds: admin and an unrelated signer
ADMIN_SEED = bytes(range(1, 33))
ATTACKER_SEED = bytes(range(99, 67, -1))
START_TIME = 1000


def make_settings(url: str, **overrides) -> Settings:
    values = {
        "database_url": url,
        "mint_replay_protection": False,
        "mint_max_expiry_seconds": 0,
        "log_level": "INFO",
        "api_host": "127.0.0.1",
        "api_port": 8000,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite:///{tmp_path / 'ledger.db'}"


@pytest.fixture
def store(db_url):
    """Fresh ledger store with tables created."""
    s = LedgerStore(db_url)
    s.init_db()
    yield s
    s.dispose()


@pytest.fixture
def clock():
    return ManualClock(START_TIME)


@pytest.fixture
def auth():
    """Authorizes everyone and records who was asked, in order."""
    return MockAuthorizer(allow_all=True)


@pytest.fixture
def settings(db_url):
    return make_settings(db_url)


@pytest.fixture
def env(store, auth, clock):
    return Env(store=store, authorizer=auth, clock=clock)


@pytest.fixture
def contract(env, settings):
    return NesteraContract(env, settings)


@pytest.fixture
def admin_keypair():
    return Keypair.from_seed(ADMIN_SEED)


@pytest.fixture
def attacker_keypair():
    return Keypair.from_seed(ATTACKER_SEED)


@pytest.fixture
def new_address():
    """Factory for fresh, valid addresses."""
    return lambda: str(Pubkey.new_unique())


@pytest.fixture
def registered(contract, new_address):
    """Factory: new address already registered via initialize_user."""

    def _make() -> str:
        address = new_address()
        contract.initialize_user(address)
        return address

    return _make


@pytest.fixture
def contract_factory(env, db_url):
    """Factory: contract over the shared env with settings overrides."""

    def _make(**overrides) -> NesteraContract:
        return NesteraContract(env, make_settings(db_url, **overrides))

    return _make


@pytest.fixture
def client(contract):
    """FastAPI TestClient bound to the per-test contract (manual clock, temp store)."""
    from fastapi.testclient import TestClient

    from nestera.api_server.server import app, get_base_contract, reset_contract_for_test

    app.dependency_overrides[get_base_contract] = lambda: contract
    yield TestClient(app)
    app.dependency_overrides.clear()
    reset_contract_for_test()
