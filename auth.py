"""
auth.py
Admin session helpers (login, logout, state).

There is a single shared admin password and the directory is the one that checks it.
A verified password is kept in the session store until logout; this is a convenience
gate, not a security boundary.
"""

from __future__ import annotations

import logging

from config import AppConfig
from directory import DirectoryClient

logger = logging.getLogger(__name__)

LOGGED_OUT = "LoggedOut"
LOGGED_IN = "LoggedIn"


def session_state(config: AppConfig) -> str:
    return LOGGED_IN if config.admin_password else LOGGED_OUT


def is_admin_logged_in(config: AppConfig) -> bool:
    return session_state(config) == LOGGED_IN


def login(client: DirectoryClient, password: str) -> bool:
    """
    Verify the password against the directory. On success it is cached for the session.
    A failed attempt also drops any credential cached earlier.
    """
    if client.verify_credential(password):
        return True
    client.config.clear_admin_password()
    return False


def logout(config: AppConfig) -> None:
    config.clear_admin_password()
    logger.info("Admin logged out")
