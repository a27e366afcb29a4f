"""Session token storage: OS keyring first, then the environment."""

import logging
import os
from enum import StrEnum

import keyring
from keyring.backends import fail
from keyring.errors import KeyringError

logger = logging.getLogger(__name__)
SERVICE_NAME = "agent-wizard"


class TokenSource(StrEnum):
    KEYRING = "keyring"
    ENV = "env"


def keyring_available() -> bool:
    """False under keyring's fail backend (headless machines, CI)."""
    return not isinstance(keyring.get_keyring(), fail.Keyring)


def lookup_token(name: str) -> tuple[str | None, TokenSource | None]:
    """Token stored under name and where it came from, or (None, None)."""
    try:
        value = keyring.get_password(SERVICE_NAME, name)
    except KeyringError as e:
        logger.debug("Keyring lookup for %s failed, trying env: %s", name, e)
        value = None
    if value and value.strip():
        return value.strip(), TokenSource.KEYRING
    value = os.environ.get(name, "").strip()
    if value:
        return value, TokenSource.ENV
    return None, None


def store_token(name: str, value: str) -> bool:
    """Save the token in the keyring. False when the backend refused it."""
    try:
        keyring.set_password(SERVICE_NAME, name, value)
    except KeyringError as e:
        logger.warning("Could not store %s in keyring: %s", name, e)
        return False
    logger.info("Stored %s in keyring", name)
    return True
