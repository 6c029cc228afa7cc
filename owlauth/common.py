"""State and helpers shared by the client and server roles."""

from __future__ import annotations

import hmac

from .config import Config
from .group import Group, Point, get_group
from .zkp import ZKP, create_zkp, verify_zkp


class OwlCommon:
    """Holds the configuration and group; owns no per-login state."""

    def __init__(self, config: Config) -> None:
        self.config = config
        self.group: Group = get_group(config.curve)

    @property
    def server_id(self) -> str:
        return self.config.server_id

    def create_zkp(self, x: int, base: Point, X: Point, prover: str) -> ZKP:
        return create_zkp(self.group, x, base, X, prover)

    def verify_zkp(self, zkp: ZKP, base: Point, X: Point, prover: str) -> bool:
        return verify_zkp(self.group, zkp, base, X, prover)

    def transcript_hash(
        self,
        K: Point,
        username: str,
        X1: Point,
        X2: Point,
        PI1: ZKP,
        PI2: ZKP,
        X3: Point,
        X4: Point,
        PI3: ZKP,
        beta: Point,
        PIBeta: ZKP,
        alpha: Point,
        PIAlpha: ZKP,
    ) -> int:
        # Both roles must feed the values in exactly this order.
        return self.group.hash(
            K, username, X1, X2, PI1.h, PI1.r, PI2.h, PI2.r,
            self.server_id, X3, X4, PI3.h, PI3.r, beta, PIBeta.h, PIBeta.r,
            alpha, PIAlpha.h, PIAlpha.r,
        )

    def derive_key(self, K: Point) -> bytes:
        return self.group.digest(K)

    @staticmethod
    def _tags_match(expected: str | None, received: str | None) -> bool:
        if expected is None or received is None:
            return False
        return hmac.compare_digest(expected.encode("utf-8"), received.encode("utf-8"))


__all__ = ["OwlCommon"]
