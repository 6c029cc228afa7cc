"""Server side of the Owl exchange.

The server holds no state between calls. ``register`` returns the record to
persist, ``auth_init`` returns the transcript to persist, and ``auth_finish``
consumes that transcript again, so each phase can run on a different process.
"""

from __future__ import annotations

import logging

from .common import OwlCommon
from .errors import AuthenticationFailure, ZKPVerificationFailure
from .messages import (
    AuthFinishRequest,
    AuthInitialValues,
    AuthInitRequest,
    AuthInitResponse,
    AuthInitResult,
    RegistrationRequest,
    ServerAuthResult,
    UserCredentials,
)

logger = logging.getLogger(__name__)


class OwlServer(OwlCommon):
    def register(self, request: RegistrationRequest) -> UserCredentials:
        group = self.group
        x3 = group.random_scalar(1, group.n - 1)
        X3 = group.base_mul(x3)
        PI3 = self.create_zkp(x3, group.G, X3, self.server_id)
        return UserCredentials(X3=X3, PI3=PI3, pi=request.pi, T=request.T)

    def auth_init(
        self,
        username: str,
        request: AuthInitRequest,
        credentials: UserCredentials,
    ) -> AuthInitResult:
        group = self.group
        G = group.G
        if not (
            self.verify_zkp(request.PI1, G, request.X1, username)
            and self.verify_zkp(request.PI2, G, request.X2, username)
        ):
            logger.warning("auth_init proof rejected for %s", username)
            raise ZKPVerificationFailure()

        x4 = group.random_scalar(1, group.n - 1)
        X4 = group.base_mul(x4)
        PI4 = self.create_zkp(x4, G, X4, self.server_id)
        secret = group.reduce(x4 * credentials.pi)
        beta_base = group.add(group.add(request.X1, request.X2), credentials.X3)
        beta = group.mul(beta_base, secret)
        PIBeta = self.create_zkp(secret, beta_base, beta, self.server_id)

        response = AuthInitResponse(
            X3=credentials.X3, X4=X4, PI3=credentials.PI3, PI4=PI4, beta=beta, PIBeta=PIBeta
        )
        initial = AuthInitialValues(
            T=credentials.T,
            pi=credentials.pi,
            x4=x4,
            X1=request.X1,
            X2=request.X2,
            X3=credentials.X3,
            X4=X4,
            beta=beta,
            PI1=request.PI1,
            PI2=request.PI2,
            PI3=credentials.PI3,
            PIBeta=PIBeta,
        )
        logger.debug("auth_init accepted for %s", username)
        return AuthInitResult(response=response, initial=initial)

    def auth_finish(
        self,
        username: str,
        request: AuthFinishRequest,
        initial: AuthInitialValues,
    ) -> ServerAuthResult:
        """Verify the client's final message against the stored transcript.

        Raises :class:`ZKPVerificationFailure` for a malformed or forged
        message and :class:`AuthenticationFailure` when only the
        password-binding check fails.
        """

        group = self.group
        X1, X2, X3, X4 = initial.X1, initial.X2, initial.X3, initial.X4
        alpha = request.alpha

        alpha_base = group.add(group.add(X1, X3), X4)
        if not self.verify_zkp(request.PIAlpha, alpha_base, alpha, username):
            logger.warning("PIAlpha rejected for %s", username)
            raise ZKPVerificationFailure()

        secret = group.reduce(initial.x4 * initial.pi)
        K = group.mul(group.sub(alpha, group.mul(X2, secret)), initial.x4)
        h = self.transcript_hash(
            K, username, X1, X2, initial.PI1, initial.PI2,
            X3, X4, initial.PI3, initial.beta, initial.PIBeta, alpha, request.PIAlpha,
        )
        # G*r + T*h == X1 holds only if the client knew t, i.e. the password.
        if group.add(group.base_mul(request.r), group.mul(initial.T, h)) != X1:
            logger.warning("password check failed for %s", username)
            raise AuthenticationFailure()

        kc = kc_test = None
        if self.config.key_confirmation:
            kc = group.key_confirmation_tag(K, self.server_id, username, X3, X4, X1, X2)
            kc_test = group.key_confirmation_tag(K, username, self.server_id, X1, X2, X3, X4)

        logger.debug("auth_finish succeeded for %s", username)
        return ServerAuthResult(key=self.derive_key(K), kc=kc, kc_test=kc_test)

    def verify_key_confirmation(self, result: ServerAuthResult, client_kc: str | None) -> bool:
        return self._tags_match(result.kc_test, client_kc)


__all__ = ["OwlServer"]
