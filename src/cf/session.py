"""Session manager that builds the process-wide Codeforces client."""

import logging
from typing import Optional

import httpx

from cf.client import CodeforcesClient
from cf.models import Session
from cf.storage import Storage

logger = logging.getLogger(__name__)


class SessionManager:
    """Loads the persisted session and provides a client bound to it."""

    def __init__(self, storage: Storage | None = None) -> None:
        self._storage = storage or Storage()

    def get_client(self, transport: Optional[httpx.BaseTransport] = None) -> CodeforcesClient:
        """Return a client for the configured host, starting a fresh session if none is saved."""
        config = self._storage.get_config()
        path = self._storage.session_file(config)

        session = self._storage.load_session(path)
        created = session is None
        if session is None:
            logger.info("Creating a new session in %s", path)
            session = Session()

        client = CodeforcesClient(session, self._storage, config, transport=transport)
        if created:
            client.save()
        return client
