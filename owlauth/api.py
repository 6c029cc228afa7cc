"""FastAPI-powered Owl authentication service.

Serve it with the optional ``server`` extra installed::

    uvicorn owlauth.api:app

Handlers are plain functions so FastAPI runs the group arithmetic in its
threadpool rather than on the event loop.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from .config import Config, load_config
from .constants import DEFAULT_STORE
from .errors import AuthenticationFailure, DeserializationError, ZKPVerificationFailure
from .messages import AuthFinishRequest, AuthInitRequest, RegistrationRequest
from .server import OwlServer
from .store import CredentialStore, LookupStatus, SessionStore

logger = logging.getLogger(__name__)

# Proof failures and wrong passwords look identical to the remote peer.
_AUTH_FAILED = "Authentication failed"


class RegisterRequest(BaseModel):
    username: str
    request: Dict[str, Any]


class RegisterResponse(BaseModel):
    username: str


class LoginInitRequest(BaseModel):
    username: str
    request: Dict[str, Any]


class LoginInitResponse(BaseModel):
    session: str
    response: Dict[str, Any]


class LoginFinishRequest(BaseModel):
    session: str
    username: str
    request: Dict[str, Any]
    kc: str | None = None


class LoginFinishResponse(BaseModel):
    success: bool
    kc: str | None = None


def _bad_request(exc: DeserializationError) -> HTTPException:
    return HTTPException(status_code=400, detail=str(exc))


def create_app(config: Config | None = None, store_path: str | None = None) -> FastAPI:
    config = config or load_config()
    store_path = store_path or os.getenv("OWL_STORE", DEFAULT_STORE)

    app = FastAPI(title="OwlAuth", description="Owl augmented PAKE authentication service")
    server = OwlServer(config)
    store = CredentialStore(store_path, config.curve)
    sessions = SessionStore(config.curve)
    app.state.owl_server = server
    app.state.credentials = store
    app.state.sessions = sessions

    @app.post("/register", response_model=RegisterResponse)
    def register(body: RegisterRequest) -> RegisterResponse:
        try:
            request = RegistrationRequest.from_dict(body.request, config.curve)
        except DeserializationError as exc:
            raise _bad_request(exc) from exc
        store.put(body.username, server.register(request))
        logger.info("registered %s", body.username)
        return RegisterResponse(username=body.username)

    @app.post("/login/init", response_model=LoginInitResponse)
    def login_init(body: LoginInitRequest) -> LoginInitResponse:
        try:
            request = AuthInitRequest.from_dict(body.request, config.curve)
        except DeserializationError as exc:
            raise _bad_request(exc) from exc

        try:
            credentials = store.get(body.username)
        except DeserializationError as exc:
            logger.warning("stored credentials for %s are unreadable: %s", body.username, exc)
            raise HTTPException(status_code=401, detail=_AUTH_FAILED) from exc
        if credentials is None:
            logger.warning("login attempt for unknown user %s", body.username)
            raise HTTPException(status_code=401, detail=_AUTH_FAILED)

        try:
            result = server.auth_init(body.username, request, credentials)
        except ZKPVerificationFailure as exc:
            raise HTTPException(status_code=401, detail=_AUTH_FAILED) from exc

        session = sessions.create(body.username, result.initial)
        return LoginInitResponse(session=session, response=result.response.to_dict())

    @app.post("/login/finish", response_model=LoginFinishResponse)
    def login_finish(body: LoginFinishRequest) -> LoginFinishResponse:
        lookup = sessions.take(body.session)
        if lookup.status is LookupStatus.ALREADY_CONSUMED:
            logger.warning("replayed session %s", body.session)
        if not lookup.found:
            raise HTTPException(status_code=404, detail="Unknown session")
        if lookup.username != body.username:
            logger.warning("session %s presented for a different user", body.session)
            raise HTTPException(status_code=401, detail=_AUTH_FAILED)

        try:
            request = AuthFinishRequest.from_dict(body.request, config.curve)
        except DeserializationError as exc:
            raise _bad_request(exc) from exc

        try:
            result = server.auth_finish(body.username, request, lookup.initial)
        except ZKPVerificationFailure as exc:
            logger.warning("login for %s rejected: invalid proof", body.username)
            raise HTTPException(status_code=401, detail=_AUTH_FAILED) from exc
        except AuthenticationFailure as exc:
            logger.warning("login for %s rejected: wrong password", body.username)
            raise HTTPException(status_code=401, detail=_AUTH_FAILED) from exc

        # A tag sent to a server without key confirmation is ignored.
        if (
            config.key_confirmation
            and body.kc is not None
            and not server.verify_key_confirmation(result, body.kc)
        ):
            logger.warning("key confirmation mismatch for %s", body.username)
            raise HTTPException(status_code=401, detail=_AUTH_FAILED)

        logger.info("login succeeded for %s", body.username)
        return LoginFinishResponse(success=True, kc=result.kc)

    return app


app = create_app()


__all__ = ["app", "create_app"]
