"""Failure kinds raised by the Owl protocol engine."""

from __future__ import annotations


class OwlError(Exception):
    """Base class for every protocol failure."""


class ZKPVerificationFailure(OwlError):
    """A supplied proof did not verify, or a public value was not a valid point."""

    def __init__(self, message: str = "ZKP verification failed") -> None:
        super().__init__(message)


class AuthenticationFailure(OwlError):
    """All proofs verified but the password-binding equation did not hold."""

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message)


class UninitialisedClientError(OwlError):
    """auth_finish was called without a live auth_init snapshot.

    Formerly the ``UninitialisedClient`` failure kind.
    """

    def __init__(self, message: str = "Client has no pending auth_init values") -> None:
        super().__init__(message)


class DeserializationError(OwlError, ValueError):
    """Wire input was missing a field or carried a malformed value."""


class UnsupportedInputType(OwlError, TypeError):
    """The hash primitive was handed a value it cannot encode."""


__all__ = [
    "OwlError",
    "ZKPVerificationFailure",
    "AuthenticationFailure",
    "UninitialisedClientError",
    "DeserializationError",
    "UnsupportedInputType",
]
