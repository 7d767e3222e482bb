import pytest
from fastapi.testclient import TestClient

from main import app, get_state
from models import GlobalParams
from settings import Settings, get_settings
from state import MoneyManagementState


@pytest.fixture
def settings():
    """Default settings, independent of the caller's environment."""
    return Settings.model_construct()


@pytest.fixture
def params():
    """Parameters from the reference worksheet."""
    return GlobalParams(stop_per_lot=9, profit_per_lot=21, cost_per_lot=75, num_steps=3)


@pytest.fixture
def state(settings):
    return MoneyManagementState.from_settings(settings)


@pytest.fixture
def client(settings, state):
    """TestClient bound to an isolated calculator session."""
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_state] = lambda: state
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
