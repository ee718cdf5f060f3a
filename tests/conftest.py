import os
import tempfile
from pathlib import Path

_tmp_dir = Path(tempfile.mkdtemp(prefix="custody-tests-"))
os.environ["SECRET_KEY"] = "test-secret"
os.environ["DATABASE_URL"] = f"sqlite:///{_tmp_dir / 'test.db'}"
os.environ["STATIC_DIR"] = str(_tmp_dir / "static")
os.environ["LOG_FILE"] = str(_tmp_dir / "logs" / "application.log")
os.environ["PUBLIC_URL"] = "http://testserver"

import pytest
from fastapi.testclient import TestClient
from sqlmodel import SQLModel, Session

from custody.core.config import settings
from custody.core.security import create_caller_token
from custody.db.core import engine
from custody.db.schema import Role, SupplyChainRole, ControlTier
from custody.main import app
from custody.models.registry import SupplyChainEntityCreate, ControlEntityCreate
from custody.services.control import ControlWorkflowService
from custody.services.events import EventService
from custody.services.registry import RegistryService
from custody.services.token import ProvenanceTokenService


ADMIN = "admin"
CONTROLLERS = ["controller-a", "controller-c"]
SUPPLY_CHAIN = ["entity-b", "entity-d", "entity-e", "entity-f", "entity-g"]
MINTER = "minter"
OUTSIDER = "outsider"


class StaticAccessControl:
    """In-memory role set standing in for the role store."""

    def __init__(self, members=None):
        self.members = {role: set(principals) for role, principals in (members or {}).items()}

    def grant(self, principal, role):
        self.members.setdefault(role, set()).add(principal)

    def has_role(self, principal, role):
        return principal in self.members.get(role, set())


@pytest.fixture(autouse=True)
def db():
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    yield
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session():
    with Session(engine) as s:
        yield s


@pytest.fixture
def access():
    return StaticAccessControl({
        Role.ADMIN: {ADMIN, settings.control_workflow_principal, settings.token_principal},
        Role.CONTROL: set(CONTROLLERS),
        Role.SUPPLY_CHAIN_ENTITY: set(SUPPLY_CHAIN),
        Role.MINTER: {MINTER},
    })


@pytest.fixture
def registry(session, access):
    return RegistryService(session, access)


@pytest.fixture
def controls(session, access, registry):
    return ControlWorkflowService(session, access, registry)


@pytest.fixture
def tokens(session, access, registry):
    return ProvenanceTokenService(session, access, registry)


@pytest.fixture
def events(session):
    return EventService(session)


@pytest.fixture
def populated(registry):
    """Registers every supply chain and control principal."""
    for principal in SUPPLY_CHAIN:
        registry.add_supply_chain_entity(
            ADMIN, principal,
            SupplyChainEntityCreate(role=SupplyChainRole.PRODUCER, tier="tier 4"))
    for principal in CONTROLLERS:
        registry.add_control_entity(
            ADMIN, principal,
            ControlEntityCreate(role=ControlTier.THIRD_PARTY, description="certifier"))
    return registry


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def auth_headers(principal: str) -> dict:
    return {"Authorization": f"Bearer {create_caller_token(principal)}"}


@pytest.fixture
def auth():
    return auth_headers


@pytest.fixture
def api_setup(client, auth):
    """
    Wires roles and registry entries through the HTTP API, starting from the
    bootstrap ROOT principal.
    """
    root = auth(settings.root_principal)

    assert client.post("/api/v1/roles/ADMIN/members", json={"principal": ADMIN}, headers=root).status_code == 201
    admin = auth(ADMIN)
    for principal in CONTROLLERS:
        client.post("/api/v1/roles/CONTROL/members", json={"principal": principal}, headers=admin)
        client.put(
            f"/api/v1/registry/control-entities/{principal}",
            json={"role": "third_party", "description": "certifier"},
            headers=admin,
        )
    for principal in SUPPLY_CHAIN:
        client.post("/api/v1/roles/SUPPLY_CHAIN_ENTITY/members", json={"principal": principal}, headers=admin)
        client.put(
            f"/api/v1/registry/supply-chain-entities/{principal}",
            json={"role": "producer", "tier": "tier 4"},
            headers=admin,
        )
    client.post("/api/v1/roles/MINTER/members", json={"principal": MINTER}, headers=admin)
    return client
