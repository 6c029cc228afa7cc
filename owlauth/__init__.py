"""Owl augmented password-authenticated key exchange."""

from .client import OwlClient
from .config import Config, load_config
from .errors import (
    AuthenticationFailure,
    DeserializationError,
    OwlError,
    UninitialisedClientError,
    UnsupportedInputType,
    ZKPVerificationFailure,
)
from .group import Curve, Group, get_group, group_for_point
from .messages import (
    AuthFinishRequest,
    AuthInitialValues,
    AuthInitRequest,
    AuthInitResponse,
    AuthInitResult,
    ClientAuthResult,
    ClientInitValues,
    RegistrationRequest,
    ServerAuthResult,
    UserCredentials,
)
from .server import OwlServer
from .store import CredentialStore, LookupStatus, SessionStore, TranscriptLookup
from .zkp import ZKP, create_zkp, verify_zkp

__all__ = [
    "OwlClient",
    "OwlServer",
    "Config",
    "load_config",
    "Curve",
    "Group",
    "get_group",
    "group_for_point",
    "ZKP",
    "create_zkp",
    "verify_zkp",
    "RegistrationRequest",
    "UserCredentials",
    "AuthInitRequest",
    "AuthInitResponse",
    "AuthInitialValues",
    "AuthFinishRequest",
    "ClientInitValues",
    "AuthInitResult",
    "ClientAuthResult",
    "ServerAuthResult",
    "CredentialStore",
    "SessionStore",
    "LookupStatus",
    "TranscriptLookup",
    "OwlError",
    "ZKPVerificationFailure",
    "AuthenticationFailure",
    "UninitialisedClientError",
    "DeserializationError",
    "UnsupportedInputType",
]
