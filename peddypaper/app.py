"""
Composition root.

Wires configuration, logging, the remote store and the device-local state
into a ViewController.
"""

import logging
import os
from typing import Optional

from peddypaper import config
from peddypaper.services.controller import ViewController, Renderer
from peddypaper.storage import get_store, LocalStateStore, RemoteStoreInterface
from peddypaper.storage.exceptions import StoreError
from peddypaper.storage.memory_store import MemoryStore

logger = logging.getLogger(__name__)


def create_controller(
    renderer: Optional[Renderer] = None,
    store: Optional[RemoteStoreInterface] = None,
    data_dir: Optional[str] = None,
    bootstrap: bool = True
) -> ViewController:
    """
    Build (and by default bootstrap) the controller.

    A store that cannot be created, e.g. a missing FIREBASE_DATABASE_URL,
    does not raise: the controller is returned un-bootstrapped with the
    error recorded, and the next login reports it.
    """
    config.configure_logging()

    data_dir = data_dir or os.environ.get('DATA_DIR') or config.DATA_DIR
    local_state = LocalStateStore(os.path.join(data_dir, config.LOCAL_STATE_FILE))
    logger.info(f"Using local state in {local_state.path}")

    store_error = None
    if store is None:
        try:
            store = get_store()
        except StoreError as e:
            store_error = str(e)
            # Placeholder so the controller exists; it never becomes ready
            store = MemoryStore()

    controller = ViewController(store, local_state, renderer=renderer)

    if store_error is not None:
        controller.fail_bootstrap(store_error)
    elif bootstrap:
        controller.bootstrap()

    return controller
