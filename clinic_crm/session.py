"""
The logged-in session: owns the credential and the identity decoded from it.

A session is created empty, filled by ``login`` (or ``restore``), and torn
down by ``logout``. Components receive the identity from it explicitly;
nothing looks it up globally.

An optional credential store keeps the credential across restarts: it is
written on login, cleared on logout and read back by ``resume``.
"""

import logging
import os

from .errors import CredentialError
from .identity import decode
from .schemas import Identity

logger = logging.getLogger("crm.session")


class FileCredentialStore:
    """Keeps one credential in a local file."""

    def __init__(self, path: str):
        self.path = path

    def load(self) -> str | None:
        if not os.path.exists(self.path):
            return None
        with open(self.path, encoding="utf-8") as fh:
            return fh.read().strip() or None

    def save(self, credential: str):
        with open(self.path, "w", encoding="utf-8") as fh:
            fh.write(credential)

    def clear(self):
        if os.path.exists(self.path):
            os.remove(self.path)


class Session:
    def __init__(self, client, store=None):
        self.client = client
        self.store = store
        self._credential: str | None = None
        self._identity: Identity | None = None

    @property
    def is_authenticated(self) -> bool:
        return self._identity is not None

    @property
    def identity(self) -> Identity:
        if self._identity is None:
            raise CredentialError("Not logged in")
        return self._identity

    @property
    def credential(self) -> str | None:
        return self._credential

    def restore(self, credential: str) -> Identity:
        """Adopt a credential obtained earlier; a bad one leaves the session empty."""
        try:
            identity = decode(credential)
        except CredentialError:
            self.logout()
            raise
        self._credential = credential
        self._identity = identity
        self.client.set_auth(credential)
        if self.store is not None:
            self.store.save(credential)
        logger.info("Session started for %s (%s)", identity.email, identity.role)
        return identity

    def resume(self) -> Identity | None:
        """Restore the stored credential, if any. Returns None when nothing is stored."""
        credential = self.store.load() if self.store is not None else None
        if not credential:
            return None
        return self.restore(credential)

    def login(self, email: str, password: str) -> Identity:
        return self.restore(self.client.login(email, password))

    def logout(self):
        if self._identity is not None:
            logger.info("Session ended for %s", self._identity.email)
        self._credential = None
        self._identity = None
        self.client.set_auth(None)
        if self.store is not None:
            self.store.clear()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.logout()
        return False
