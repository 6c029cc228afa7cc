"""Protocol messages, stored transcripts and their textual wire encoding.

Every wire type encodes to a flat JSON-compatible mapping: scalars as
lowercase hexadecimal without a ``0x`` prefix, points as compressed SEC1
hexadecimal and proofs as nested ``{"h": ..., "r": ...}`` objects.
Decoding accepts that mapping or its JSON text and validates every field.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field, fields
from typing import Any, ClassVar, Dict, Mapping, Tuple, TypeVar, Union

from .errors import DeserializationError
from .group import Curve, Group, Point, get_group, group_for_point
from .zkp import ZKP

_HEX = re.compile(r"[0-9a-fA-F]+")

SCALAR = "scalar"
POINT = "point"
PROOF = "zkp"

M = TypeVar("M", bound="WireMessage")


def _parse_scalar(value: Any, group: Group) -> int:
    if not isinstance(value, str) or not _HEX.fullmatch(value):
        raise ValueError("Expected a hexadecimal scalar")
    scalar = int(value, 16)
    if scalar.bit_length() > 8 * group.scalar_length:
        raise ValueError("Scalar is wider than the group order")
    return scalar


def _parse_point(value: Any, group: Group) -> Point:
    if not isinstance(value, str) or not _HEX.fullmatch(value):
        raise ValueError("Expected a hexadecimal point encoding")
    return group.decode_point(value)


def _parse_zkp(value: Any, group: Group) -> ZKP:
    if not isinstance(value, Mapping):
        raise ValueError("Expected a proof object")
    return ZKP(h=_parse_scalar(value.get("h"), group), r=_parse_scalar(value.get("r"), group))


def _resolve_group(curve: Union[Curve, Group, str, int]) -> Group:
    if isinstance(curve, Group):
        return curve
    return get_group(curve)


class WireMessage:
    """Shared codec for the dataclass messages below."""

    _KINDS: ClassVar[Dict[str, str]] = {}

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        for item in fields(self):  # type: ignore[arg-type]
            kind = self._KINDS[item.name]
            value = getattr(self, item.name)
            if kind == SCALAR:
                payload[item.name] = format(value, "x")
            elif kind == POINT:
                payload[item.name] = group_for_point(value).point_hex(value)
            else:
                payload[item.name] = value.to_dict()
        return payload

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(
        cls: type[M],
        data: Union[Mapping[str, Any], str, bytes, None],
        curve: Union[Curve, Group, str, int],
    ) -> M:
        """Build a message from its mapping or JSON text, or raise DeserializationError."""

        group = _resolve_group(curve)
        name = cls.__name__
        if isinstance(data, (str, bytes)):
            try:
                data = json.loads(data)
            except ValueError as exc:
                raise DeserializationError(f"Failed to deserialize {name}: invalid JSON") from exc
        if not isinstance(data, Mapping):
            raise DeserializationError(f"Failed to deserialize {name}: expected an object")

        values: Dict[str, Any] = {}
        for key, kind in cls._KINDS.items():
            if key not in data:
                raise DeserializationError(f"Failed to deserialize {name}: missing {key}")
            raw = data[key]
            try:
                if kind == SCALAR:
                    values[key] = _parse_scalar(raw, group)
                elif kind == POINT:
                    values[key] = _parse_point(raw, group)
                else:
                    values[key] = _parse_zkp(raw, group)
            except ValueError as exc:
                raise DeserializationError(
                    f"Failed to deserialize {name}: invalid {key} ({exc})"
                ) from exc
        return cls(**values)


@dataclass
class RegistrationRequest(WireMessage):
    """Sent once at enrollment; the username travels alongside it."""

    _KINDS: ClassVar[Dict[str, str]] = {"pi": SCALAR, "T": POINT}

    pi: int
    T: Point


@dataclass
class UserCredentials(WireMessage):
    """Durable per-user record kept by the credential store."""

    _KINDS: ClassVar[Dict[str, str]] = {"X3": POINT, "PI3": PROOF, "pi": SCALAR, "T": POINT}

    X3: Point
    PI3: ZKP
    pi: int
    T: Point


@dataclass
class AuthInitRequest(WireMessage):
    _KINDS: ClassVar[Dict[str, str]] = {"X1": POINT, "X2": POINT, "PI1": PROOF, "PI2": PROOF}

    X1: Point
    X2: Point
    PI1: ZKP
    PI2: ZKP


@dataclass
class AuthInitResponse(WireMessage):
    _KINDS: ClassVar[Dict[str, str]] = {
        "X3": POINT,
        "X4": POINT,
        "PI3": PROOF,
        "PI4": PROOF,
        "beta": POINT,
        "PIBeta": PROOF,
    }

    X3: Point
    X4: Point
    PI3: ZKP
    PI4: ZKP
    beta: Point
    PIBeta: ZKP


@dataclass
class AuthInitialValues(WireMessage):
    """Server transcript carried by the caller from auth_init to auth_finish."""

    _KINDS: ClassVar[Dict[str, str]] = {
        "T": POINT,
        "pi": SCALAR,
        "x4": SCALAR,
        "X1": POINT,
        "X2": POINT,
        "X3": POINT,
        "X4": POINT,
        "beta": POINT,
        "PI1": PROOF,
        "PI2": PROOF,
        "PI3": PROOF,
        "PIBeta": PROOF,
    }

    T: Point
    pi: int
    x4: int
    X1: Point
    X2: Point
    X3: Point
    X4: Point
    beta: Point
    PI1: ZKP
    PI2: ZKP
    PI3: ZKP
    PIBeta: ZKP


@dataclass
class AuthFinishRequest(WireMessage):
    _KINDS: ClassVar[Dict[str, str]] = {"alpha": POINT, "PIAlpha": PROOF, "r": SCALAR}

    alpha: Point
    PIAlpha: ZKP
    r: int


@dataclass
class ClientInitValues:
    """Client secrets held between auth_init and auth_finish.

    A snapshot is single use: auth_finish marks it consumed so the
    ephemeral scalars are never reused for a second exchange.
    """

    username: str
    t: int
    pi: int
    x1: int
    x2: int
    X1: Point
    X2: Point
    PI1: ZKP
    PI2: ZKP
    consumed: bool = field(default=False, compare=False)


@dataclass
class AuthInitResult:
    response: AuthInitResponse
    initial: AuthInitialValues


@dataclass
class ClientAuthResult:
    key: bytes
    kc: str | None
    kc_test: str | None
    finish_request: AuthFinishRequest


@dataclass
class ServerAuthResult:
    key: bytes
    kc: str | None
    kc_test: str | None


WIRE_TYPES: Tuple[type, ...] = (
    RegistrationRequest,
    UserCredentials,
    AuthInitRequest,
    AuthInitResponse,
    AuthInitialValues,
    AuthFinishRequest,
)


__all__ = [
    "WireMessage",
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
    "WIRE_TYPES",
]
