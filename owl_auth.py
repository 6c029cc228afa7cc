"""Command line interface for the Owl password authentication demo."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Dict

from owlauth.client import OwlClient
from owlauth.config import Config, load_config
from owlauth.constants import DEFAULT_STORE
from owlauth.errors import OwlError
from owlauth.messages import (
    AuthFinishRequest,
    AuthInitRequest,
    AuthInitResponse,
    RegistrationRequest,
)
from owlauth.server import OwlServer
from owlauth.store import CredentialStore, SessionStore

logger = logging.getLogger("owl_auth")


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--store",
        default=DEFAULT_STORE,
        help=f"Location of the JSON credential store (default: {DEFAULT_STORE})",
    )
    parser.add_argument(
        "--curve",
        help="Curve to run the protocol over: P-256, P-384 or P-521",
    )
    parser.add_argument("--server-id", help="Identity the server proves its values under")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    register_parser = subparsers.add_parser("register", help="Register a username and password")
    register_parser.add_argument("username")
    register_parser.add_argument("password")

    login_parser = subparsers.add_parser("login", help="Run a full login exchange")
    login_parser.add_argument("username")
    login_parser.add_argument("password")

    return parser.parse_args(argv)


def build_config(namespace: argparse.Namespace) -> Config:
    return load_config(curve=namespace.curve, server_id=namespace.server_id)


def register(config: Config, store: CredentialStore, username: str, password: str) -> Dict[str, Any]:
    client = OwlClient(config)
    server = OwlServer(config)

    wire = client.register(username, password).to_json()
    credentials = server.register(RegistrationRequest.from_dict(wire, config.curve))
    store.put(username, credentials)
    return {"username": username, "curve": config.curve.label, "registered": True}


def login(config: Config, store: CredentialStore, username: str, password: str) -> Dict[str, Any]:
    """Run all three messages through their wire encoding, as a remote pair would."""

    client = OwlClient(config)
    server = OwlServer(config)
    sessions = SessionStore(config.curve)

    try:
        credentials = store.get(username)
        if credentials is None:
            return {"username": username, "success": False, "error": "Unknown user"}

        init_request, init_values = client.auth_init(username, password)
        init = server.auth_init(
            username,
            AuthInitRequest.from_dict(init_request.to_json(), config.curve),
            credentials,
        )
        session = sessions.create(username, init.initial)

        client_result = client.auth_finish(
            AuthInitResponse.from_dict(init.response.to_json(), config.curve),
            init_values,
        )
        lookup = sessions.take(session)
        server_result = server.auth_finish(
            username,
            AuthFinishRequest.from_dict(client_result.finish_request.to_json(), config.curve),
            lookup.initial,
        )
    except OwlError as exc:
        logger.debug("login failed", exc_info=True)
        return {"username": username, "success": False, "error": str(exc)}

    payload: Dict[str, Any] = {
        "username": username,
        "success": client_result.key == server_result.key,
        "key": client_result.key.hex(),
    }
    if config.key_confirmation:
        payload["key_confirmed"] = server.verify_key_confirmation(
            server_result, client_result.kc
        ) and client.verify_key_confirmation(client_result, server_result.kc)
    return payload


def main(argv: list[str] | None = None) -> int:
    namespace = parse_args(argv if argv is not None else sys.argv[1:])
    logging.basicConfig(
        level=logging.DEBUG if namespace.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    try:
        config = build_config(namespace)
    except ValueError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 1
    store = CredentialStore(namespace.store, config.curve)

    if namespace.command == "register":
        payload = register(config, store, namespace.username, namespace.password)
        print(json.dumps(payload, indent=2))
        return 0

    if namespace.command == "login":
        payload = login(config, store, namespace.username, namespace.password)
        print(json.dumps(payload, indent=2))
        return 0 if payload["success"] else 1

    raise RuntimeError("Unreachable")


if __name__ == "__main__":
    raise SystemExit(main())
