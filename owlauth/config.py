"""Configuration consumed by the client and server roles."""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from .constants import DEFAULT_CURVE, DEFAULT_SERVER_ID
from .group import Curve

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Config:
    """Curve selection, the server identity and the key-confirmation switch."""

    curve: Curve = Curve.P256
    server_id: str = DEFAULT_SERVER_ID
    key_confirmation: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "curve", Curve.parse(self.curve))
        if not self.server_id:
            raise ValueError("server_id must not be empty")


def load_config(**overrides: object) -> Config:
    """Build a :class:`Config` from ``OWL_*`` environment variables.

    Values from a ``.env`` file are picked up first; keyword overrides that
    are not ``None`` win over the environment.
    """

    load_dotenv()
    values = {
        "curve": os.getenv("OWL_CURVE", DEFAULT_CURVE),
        "server_id": os.getenv("OWL_SERVER_ID", DEFAULT_SERVER_ID),
        "key_confirmation": os.getenv("OWL_KEY_CONFIRMATION", "1").strip().lower() in _TRUTHY,
    }
    values.update({key: value for key, value in overrides.items() if value is not None})
    return Config(**values)  # type: ignore[arg-type]


__all__ = ["Config", "load_config"]
