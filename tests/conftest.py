"""
Shared test fixtures and configuration.

Provides reusable fixtures for all test files including a seeded memory
store, device-local state in a temporary directory, a loaded AppState and
a bootstrapped controller with a recording renderer.
"""

import copy
import os
import shutil
import tempfile
from typing import Any, Dict, List

import pytest

from peddypaper.models import AdminCredential, Team, Station, Submission
from peddypaper.services.controller import ViewController, Renderer
from peddypaper.services.state import AppState
from peddypaper.storage import LocalStateStore
from peddypaper.storage.memory_store import MemoryStore


# =============================================================================
# SAMPLE DATA
# =============================================================================

SAMPLE_TREE: Dict[str, Any] = {
    'admin': {'username': 'admin', 'password': 'segredo'},
    'equipas': {
        'T1': {'username': 'lobos', 'password': 'uivo', 'team_name': 'Lobos'},
        'T2': {'username': 'aguias', 'password': 'voo', 'teamName': 'Águias'},
        'T3': {'username': 'linces', 'password': 'salto', 'team_name': 'Linces', 'role': 'team'},
    },
    'postos': {
        '1': {'game_label': 'P1', 'pin': '4412'},
        '2': {'game_label': 'P2', 'pin': ' 0815 '},
        '10': {'game_label': 'P10', 'pin': '7777'},
    },
}


@pytest.fixture
def sample_tree() -> Dict[str, Any]:
    """Provide a fresh copy of the seeded store tree."""
    return copy.deepcopy(SAMPLE_TREE)


@pytest.fixture
def sample_teams() -> List[Team]:
    """Provide the sample teams as models."""
    return [
        Team(id='T1', username='lobos', password='uivo', team_name='Lobos'),
        Team(id='T2', username='aguias', password='voo', team_name='Águias'),
        Team(id='T3', username='linces', password='salto', team_name='Linces'),
    ]


@pytest.fixture
def sample_stations() -> List[Station]:
    """Provide the sample stations in catalog order."""
    return [
        Station(posto_id='1', label='P1'),
        Station(posto_id='2', label='P2'),
        Station(posto_id='10', label='P10'),
    ]


# =============================================================================
# STORAGE FIXTURES
# =============================================================================

@pytest.fixture
def test_data_dir():
    """Provide a temporary directory for local state."""
    temp_dir = tempfile.mkdtemp(prefix="peddypaper_test_")
    yield temp_dir

    if os.path.exists(temp_dir):
        shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def memory_store(sample_tree):
    """Provide a memory store seeded with the sample tree."""
    store = MemoryStore(sample_tree)
    store.initialize()
    yield store
    store.close()


@pytest.fixture
def local_state(test_data_dir) -> LocalStateStore:
    """Provide device-local state backed by a temporary file."""
    return LocalStateStore(os.path.join(test_data_dir, 'local_state.json'))


@pytest.fixture
def app_state(sample_teams, sample_stations) -> AppState:
    """Provide a ready AppState with the sample catalog and no submissions."""
    state = AppState()
    state.load_catalog(
        AdminCredential(username='admin', password='segredo'),
        sample_teams,
        sample_stations
    )
    return state


@pytest.fixture
def make_submission():
    """Factory for canonical rows."""
    def _make(equipa: str, posto: str, pontos: int = 100,
              timestamp: str = '2024-05-01T10:00:00Z') -> Submission:
        return Submission(
            id=f"{equipa}_{posto}",
            timestamp=timestamp,
            posto=posto,
            equipa=equipa,
            pontos=pontos
        )
    return _make


# =============================================================================
# CONTROLLER FIXTURES
# =============================================================================

class RecordingRenderer(Renderer):
    """Renderer that keeps every view it was handed."""

    def __init__(self):
        self.logins: List[str] = []
        self.team_views = []
        self.admin_views = []

    def show_login(self, message: str = '') -> None:
        self.logins.append(message)

    def render_team(self, view) -> None:
        self.team_views.append(view)

    def render_admin(self, view) -> None:
        self.admin_views.append(view)


@pytest.fixture
def renderer() -> RecordingRenderer:
    return RecordingRenderer()


@pytest.fixture
def controller(memory_store, local_state, renderer):
    """Provide a bootstrapped controller over the seeded memory store."""
    ctrl = ViewController(memory_store, local_state, renderer=renderer, user_agent='pytest')
    ctrl.bootstrap()
    yield ctrl
    ctrl.close()
