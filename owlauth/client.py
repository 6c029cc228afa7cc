"""Client side of the Owl exchange."""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from .common import OwlCommon
from .errors import UninitialisedClientError, ZKPVerificationFailure
from .messages import (
    AuthFinishRequest,
    AuthInitRequest,
    AuthInitResponse,
    ClientAuthResult,
    ClientInitValues,
    RegistrationRequest,
)

logger = logging.getLogger(__name__)


class OwlClient(OwlCommon):
    """Derives password material and drives registration and login.

    The client keeps no login state of its own: ``auth_init`` hands back a
    :class:`ClientInitValues` snapshot which the caller passes to
    ``auth_finish``, so one instance may serve concurrent logins.
    """

    def _password_scalars(self, username: str, password: str) -> Tuple[int, int]:
        group = self.group
        t = group.reduce(group.hash(username, password))
        pi = group.reduce(group.hash(t))
        return t, pi

    def register(self, username: str, password: str) -> RegistrationRequest:
        t, pi = self._password_scalars(username, password)
        return RegistrationRequest(pi=pi, T=self.group.base_mul(t))

    def auth_init(self, username: str, password: str) -> Tuple[AuthInitRequest, ClientInitValues]:
        group = self.group
        t, pi = self._password_scalars(username, password)
        x1 = group.random_scalar(1, group.n - 1)
        x2 = group.random_scalar(1, group.n - 1)
        X1 = group.base_mul(x1)
        X2 = group.base_mul(x2)
        PI1 = self.create_zkp(x1, group.G, X1, username)
        PI2 = self.create_zkp(x2, group.G, X2, username)
        values = ClientInitValues(
            username=username, t=t, pi=pi, x1=x1, x2=x2, X1=X1, X2=X2, PI1=PI1, PI2=PI2
        )
        logger.debug("auth_init prepared for %s", username)
        return AuthInitRequest(X1=X1, X2=X2, PI1=PI1, PI2=PI2), values

    def auth_finish(
        self,
        response: AuthInitResponse,
        init_values: Optional[ClientInitValues],
    ) -> ClientAuthResult:
        """Check the server's proofs, then build the final message and session key."""

        if init_values is None or init_values.consumed:
            raise UninitialisedClientError()
        init_values.consumed = True

        group = self.group
        G = group.G
        username = init_values.username
        X1, X2, x1, x2 = init_values.X1, init_values.X2, init_values.x1, init_values.x2
        X3, X4, beta = response.X3, response.X4, response.beta

        if not self.verify_zkp(response.PI3, G, X3, self.server_id):
            logger.warning("PI3 rejected for %s", username)
            raise ZKPVerificationFailure()
        if not self.verify_zkp(response.PI4, G, X4, self.server_id):
            logger.warning("PI4 rejected for %s", username)
            raise ZKPVerificationFailure()
        beta_base = group.add(group.add(X1, X2), X3)
        if not self.verify_zkp(response.PIBeta, beta_base, beta, self.server_id):
            logger.warning("PIBeta rejected for %s", username)
            raise ZKPVerificationFailure()

        secret = group.reduce(x2 * init_values.pi)
        alpha_base = group.add(group.add(X1, X3), X4)
        alpha = group.mul(alpha_base, secret)
        PIAlpha = self.create_zkp(secret, alpha_base, alpha, username)
        K = group.mul(group.sub(beta, group.mul(X4, secret)), x2)
        h = self.transcript_hash(
            K, username, X1, X2, init_values.PI1, init_values.PI2,
            X3, X4, response.PI3, beta, response.PIBeta, alpha, PIAlpha,
        )
        r = group.reduce(x1 - init_values.t * h)

        kc = kc_test = None
        if self.config.key_confirmation:
            kc = group.key_confirmation_tag(K, username, self.server_id, X1, X2, X3, X4)
            kc_test = group.key_confirmation_tag(K, self.server_id, username, X3, X4, X1, X2)

        logger.debug("auth_finish completed for %s", username)
        return ClientAuthResult(
            key=self.derive_key(K),
            kc=kc,
            kc_test=kc_test,
            finish_request=AuthFinishRequest(alpha=alpha, PIAlpha=PIAlpha, r=r),
        )

    def verify_key_confirmation(self, result: ClientAuthResult, server_kc: str | None) -> bool:
        """True when the server's tag proves it derived the same key."""

        return self._tags_match(result.kc_test, server_kc)


__all__ = ["OwlClient"]
