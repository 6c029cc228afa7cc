"""Schnorr non-interactive zero-knowledge proofs bound to a prover identity."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from .group import Group, Point


@dataclass(frozen=True)
class ZKP:
    """Fiat-Shamir challenge ``h`` and response ``r``."""

    h: int
    r: int

    def to_dict(self) -> Dict[str, str]:
        return {"h": format(self.h, "x"), "r": format(self.r, "x")}


def create_zkp(group: Group, x: int, base: Point, X: Point, prover: str) -> ZKP:
    """Prove knowledge of ``x`` with ``X = base * x`` on behalf of ``prover``."""

    v = group.random_scalar(1, group.n - 1)
    V = group.mul(base, v)
    h = group.hash(base, V, X, prover)
    r = group.reduce(v - x * h)
    return ZKP(h=h, r=r)


def verify_zkp(group: Group, zkp: ZKP, base: Point, X: Point, prover: str) -> bool:
    """Check ``zkp`` against ``(base, X, prover)``; never raises on bad input."""

    if not group.is_valid_point(X):
        return False
    V = group.add(group.mul(base, zkp.r), group.mul(X, zkp.h))
    return zkp.h == group.hash(base, V, X, prover)


__all__ = ["ZKP", "create_zkp", "verify_zkp"]
