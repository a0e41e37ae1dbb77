"""
errors.py
Error kinds raised by the lifecycle helpers and the directory client.
Every error carries a message that is safe to show to the user.
"""

from __future__ import annotations


class GymError(Exception):
    default_message = "Something went wrong"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(GymError):
    default_message = "Invalid input"


class NotConfigured(GymError):
    default_message = "API URL not configured. Please set up first."


class DirectoryError(GymError):
    """Failure reported by (or while talking to) the member directory."""
    default_message = "Directory request failed"


class NotFound(DirectoryError):
    default_message = "Member not found"


class AuthError(DirectoryError):
    default_message = "Invalid password"


class Conflict(DirectoryError):
    default_message = "Member ID already exists"


class NetworkError(DirectoryError):
    default_message = "Could not reach the membership directory"


class Timeout(NetworkError):
    default_message = "The membership directory did not respond in time"
