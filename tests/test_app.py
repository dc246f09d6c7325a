"""Tests for controller wiring."""

import json
import os
from unittest.mock import patch

from peddypaper.app import create_controller
from peddypaper.storage import reset_store
from peddypaper.storage.memory_store import MemoryStore


class TestCreateController:
    """Tests for create_controller()."""

    def setup_method(self):
        reset_store()

    def teardown_method(self):
        reset_store()

    def test_with_explicit_store(self, sample_tree, test_data_dir, renderer):
        """A given store is bootstrapped and a login screen is shown."""
        controller = create_controller(
            renderer=renderer, store=MemoryStore(sample_tree), data_dir=test_data_dir
        )

        assert controller.state.ready is True
        assert renderer.logins
        controller.close()

    def test_memory_store_from_env(self, sample_tree, test_data_dir, renderer):
        """STORE_TYPE=memory with a seed file gives a ready controller."""
        seed = os.path.join(test_data_dir, 'seed.json')
        with open(seed, 'w', encoding='utf-8') as f:
            json.dump(sample_tree, f)

        env = {'STORE_TYPE': 'memory', 'MEMORY_SEED_FILE': seed}
        with patch.dict(os.environ, env, clear=False):
            controller = create_controller(renderer=renderer, data_dir=test_data_dir)

        assert controller.state.ready is True
        result = controller.login('lobos', 'uivo')
        assert result.ok is True
        controller.close()

    def test_local_state_under_data_dir(self, sample_tree, test_data_dir):
        """Device state is kept in the configured data directory."""
        controller = create_controller(
            store=MemoryStore(sample_tree), data_dir=test_data_dir, bootstrap=False
        )

        assert str(controller.sessions.local_state.path).startswith(test_data_dir)

    def test_bad_store_type_is_reported(self, test_data_dir, renderer):
        """An unusable backend leaves the controller un-ready with the error shown."""
        with patch.dict(os.environ, {'STORE_TYPE': 'carrier-pigeon'}, clear=False):
            controller = create_controller(renderer=renderer, data_dir=test_data_dir)

        assert controller.state.ready is False
        assert controller.state.bootstrap_error
        assert renderer.logins[-1].startswith('Erro ao iniciar')

        result = controller.login('lobos', 'uivo')
        assert result.ok is False
        assert result.message.startswith('Erro ao iniciar')

    def test_firebase_without_url_is_reported(self, test_data_dir, renderer):
        """Missing FIREBASE_DATABASE_URL does not raise."""
        env = {'STORE_TYPE': 'firebase', 'FIREBASE_DATABASE_URL': ''}
        with patch.dict(os.environ, env, clear=False):
            controller = create_controller(renderer=renderer, data_dir=test_data_dir)

        assert controller.state.ready is False
        assert 'FIREBASE_DATABASE_URL' in controller.state.bootstrap_error
