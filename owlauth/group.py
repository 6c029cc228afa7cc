"""Prime-order elliptic-curve group and the hashing primitives built on it."""

from __future__ import annotations

import hashlib
import hmac
import secrets
from enum import Enum
from typing import Dict, Tuple, Union

from ecdsa import NIST256p, NIST384p, NIST521p
from ecdsa.curves import Curve as _EcdsaCurve
from ecdsa.ellipticcurve import INFINITY, AbstractPoint, PointJacobi
from ecdsa.errors import MalformedPointError

from .constants import KC_TAG, LENGTH_PREFIX_BYTES
from .errors import UnsupportedInputType

Point = AbstractPoint
HashInput = Union[bytes, str, int, AbstractPoint]


class Curve(Enum):
    """The closed set of supported curves, valued by their strength."""

    P256 = 256
    P384 = 384
    P521 = 521

    @property
    def label(self) -> str:
        return f"P-{self.value}"

    @classmethod
    def parse(cls, value: Union[str, int, "Curve"]) -> "Curve":
        """Accept ``P-256``, ``P256``, ``256`` (and the other sizes) or a member."""

        if isinstance(value, Curve):
            return value
        text = str(value).strip().upper().replace("-", "")
        if text.startswith("P"):
            text = text[1:]
        for member in cls:
            if text == str(member.value):
                return member
        raise ValueError(f"Unsupported curve: {value!r}")


_PARAMETERS: Dict[Curve, Tuple[_EcdsaCurve, str]] = {
    Curve.P256: (NIST256p, "sha256"),
    Curve.P384: (NIST384p, "sha384"),
    Curve.P521: (NIST521p, "sha512"),
}


class Group:
    """Scalar and point operations for one fixed curve and generator.

    All scalars are integers taken modulo the subgroup order ``n``; every
    point the protocol exchanges is expected to be a non-identity element of
    the order-``n`` subgroup (the NIST curves have cofactor one).
    """

    def __init__(self, curve: Curve) -> None:
        self.curve = Curve.parse(curve)
        params, self.hash_name = _PARAMETERS[self.curve]
        self._params = params
        self.n: int = params.order
        self.G: PointJacobi = params.generator
        self.p: int = params.curve.p()
        self.scalar_length = (self.n.bit_length() + 7) // 8

    def __repr__(self) -> str:
        return f"Group({self.curve.label})"

    # scalars

    def reduce(self, x: int) -> int:
        # Python's % already takes the sign of the divisor.
        return x % self.n

    def random_scalar(self, lo: int = 1, hi: int | None = None) -> int:
        """Uniform integer in ``[lo, hi]`` drawn from the system CSPRNG."""

        if hi is None:
            hi = self.n - 1
        if lo > hi:
            raise ValueError("Empty range for random scalar")
        return secrets.randbelow(hi - lo + 1) + lo

    # points

    def add(self, a: Point, b: Point) -> Point:
        return a + b

    def sub(self, a: Point, b: Point) -> Point:
        # Multiplying by n-1 keeps the coordinates reduced, unlike negation.
        return self.add(a, self.mul(b, -1))

    def mul(self, point: Point, k: int) -> Point:
        k = self.reduce(k)
        if k == 0 or point == INFINITY:
            return INFINITY
        return point * k

    def base_mul(self, k: int) -> Point:
        return self.mul(self.G, k)

    def is_valid_point(self, point: object) -> bool:
        """True for an on-curve, non-identity point of order ``n``."""

        if not isinstance(point, AbstractPoint):
            return False
        if point == INFINITY:
            return False
        x, y = point.x(), point.y()
        if not (0 <= x < self.p and 0 <= y < self.p):
            return False
        return bool(self._params.curve.contains_point(x, y))

    def encode_point(self, point: Point) -> bytes:
        """SEC1 compressed encoding, with the identity as a single zero byte."""

        if point == INFINITY:
            return b"\x00"
        return point.to_bytes("compressed")

    def decode_point(self, data: Union[bytes, str]) -> PointJacobi:
        """Parse a compressed or uncompressed SEC1 encoding into a valid point."""

        if isinstance(data, str):
            data = bytes.fromhex(data)
        try:
            point = PointJacobi.from_bytes(
                self._params.curve,
                data,
                validate_encoding=True,
                valid_encodings=("compressed", "uncompressed"),
                order=self.n,
            )
        except MalformedPointError as exc:
            raise ValueError(f"Invalid point encoding: {exc}") from exc
        if not self.is_valid_point(point):
            raise ValueError("Point is not a valid group element")
        return point

    def point_hex(self, point: Point) -> str:
        return self.encode_point(point).hex()

    # hashing

    def encode_scalar(self, x: int) -> bytes:
        if x < 0 or x.bit_length() > 8 * self.scalar_length:
            raise ValueError("Scalar does not fit the fixed encoding width")
        return x.to_bytes(self.scalar_length, "big")

    def encode(self, *args: HashInput) -> bytes:
        """Canonical concatenation of heterogeneous hash inputs."""

        chunks = []
        for arg in args:
            if isinstance(arg, str):
                arg = arg.encode("utf-8")
            if isinstance(arg, (bytes, bytearray)):
                chunks.append(len(arg).to_bytes(LENGTH_PREFIX_BYTES, "big"))
                chunks.append(bytes(arg))
            elif isinstance(arg, bool):
                raise UnsupportedInputType("Booleans cannot be hashed")
            elif isinstance(arg, int):
                chunks.append(self.encode_scalar(arg))
            elif isinstance(arg, AbstractPoint):
                chunks.append(self.encode_point(arg))
            else:
                raise UnsupportedInputType(
                    f"Unsupported type in hash input: {type(arg).__name__}"
                )
        return b"".join(chunks)

    def digest(self, *args: HashInput) -> bytes:
        return hashlib.new(self.hash_name, self.encode(*args)).digest()

    def hash(self, *args: HashInput) -> int:
        return int.from_bytes(self.digest(*args), "big")

    def key_confirmation_tag(
        self,
        K: Point,
        sender_id: str,
        receiver_id: str,
        p1: Point,
        p2: Point,
        q1: Point,
        q2: Point,
    ) -> str:
        """HMAC tag proving knowledge of ``K`` from ``sender_id`` to ``receiver_id``."""

        kc_key = self.digest(K, KC_TAG)
        message = self.encode(sender_id, receiver_id, p1, p2, q1, q2)
        return hmac.new(kc_key, message, self.hash_name).hexdigest()


_GROUPS: Dict[Curve, Group] = {}


def get_group(curve: Union[Curve, str, int]) -> Group:
    """Shared :class:`Group` instance for ``curve``."""

    member = Curve.parse(curve)
    group = _GROUPS.get(member)
    if group is None:
        group = _GROUPS[member] = Group(member)
    return group


def group_for_point(point: Point) -> Group:
    """The supported group whose curve ``point`` lies on."""

    for member in Curve:
        group = get_group(member)
        if point.curve() == group._params.curve:
            return group
    raise ValueError("Point is not on a supported curve")


__all__ = ["Curve", "Group", "HashInput", "Point", "get_group", "group_for_point"]
