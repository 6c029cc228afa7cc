"""Protocol constants shared by the client, server and tooling."""

from __future__ import annotations

DEFAULT_CURVE = "P-256"
DEFAULT_SERVER_ID = "localhost"
DEFAULT_STORE = "owl_users.json"

# Domain separation tag for the key-confirmation sub-key.
KC_TAG = "KC"

# Width of the length prefix used when hashing raw bytes and strings.
LENGTH_PREFIX_BYTES = 4

# Consumed session ids remembered for replay reporting.
CONSUMED_SESSION_HISTORY = 1024

__all__ = [
    "DEFAULT_CURVE",
    "DEFAULT_SERVER_ID",
    "DEFAULT_STORE",
    "KC_TAG",
    "LENGTH_PREFIX_BYTES",
    "CONSUMED_SESSION_HISTORY",
]
