"""End-to-end exchanges between OwlClient and OwlServer."""

import unittest
from dataclasses import replace

from owlauth.client import OwlClient
from owlauth.config import Config
from owlauth.errors import AuthenticationFailure, ZKPVerificationFailure
from owlauth.group import Curve
from owlauth.messages import (
    AuthFinishRequest,
    AuthInitialValues,
    AuthInitRequest,
    AuthInitResponse,
    RegistrationRequest,
    UserCredentials,
)
from owlauth.server import OwlServer

USERNAME = "test-user"
PASSWORD = "secret-password"


def run_exchange(config: Config, password: str, registered_password: str = PASSWORD):
    """Register, then log in, passing every message through its wire form."""

    client = OwlClient(config)
    server = OwlServer(config)
    curve = config.curve

    registration = RegistrationRequest.from_dict(
        client.register(USERNAME, registered_password).to_json(), curve
    )
    stored = UserCredentials.from_dict(server.register(registration).to_dict(), curve)

    init_request, init_values = client.auth_init(USERNAME, password)
    init = server.auth_init(
        USERNAME, AuthInitRequest.from_dict(init_request.to_dict(), curve), stored
    )
    transcript = init.initial.to_json()

    client_result = client.auth_finish(
        AuthInitResponse.from_dict(init.response.to_json(), curve), init_values
    )
    server_result = server.auth_finish(
        USERNAME,
        AuthFinishRequest.from_dict(client_result.finish_request.to_json(), curve),
        AuthInitialValues.from_dict(transcript, curve),
    )
    return client_result, server_result


class TestFullProtocol(unittest.TestCase):
    def test_keys_match_on_every_curve(self) -> None:
        for curve, key_length in ((Curve.P256, 32), (Curve.P384, 48), (Curve.P521, 64)):
            with self.subTest(curve=curve.label):
                config = Config(curve=curve, server_id="localhost")
                client_result, server_result = run_exchange(config, PASSWORD)
                self.assertEqual(client_result.key, server_result.key)
                self.assertEqual(len(client_result.key), key_length)
                self.assertEqual(client_result.kc, server_result.kc_test)
                self.assertEqual(server_result.kc, client_result.kc_test)

    def test_wrong_password_is_an_authentication_failure(self) -> None:
        config = Config(curve=Curve.P256, server_id="localhost")
        with self.assertRaises(AuthenticationFailure):
            run_exchange(config, "wrong-password")

    def test_sessions_derive_distinct_keys(self) -> None:
        config = Config(curve=Curve.P256, server_id="localhost")
        first, _ = run_exchange(config, PASSWORD)
        second, _ = run_exchange(config, PASSWORD)
        self.assertNotEqual(first.key, second.key)

    def test_key_confirmation_can_be_disabled(self) -> None:
        config = Config(curve=Curve.P256, server_id="localhost", key_confirmation=False)
        client_result, server_result = run_exchange(config, PASSWORD)
        self.assertEqual(client_result.key, server_result.key)
        self.assertIsNone(client_result.kc)
        self.assertIsNone(server_result.kc_test)

    def test_key_confirmation_checks(self) -> None:
        config = Config(curve=Curve.P256, server_id="localhost")
        client_result, server_result = run_exchange(config, PASSWORD)
        server = OwlServer(config)
        client = OwlClient(config)
        self.assertTrue(server.verify_key_confirmation(server_result, client_result.kc))
        self.assertTrue(client.verify_key_confirmation(client_result, server_result.kc))
        self.assertFalse(server.verify_key_confirmation(server_result, server_result.kc))
        self.assertFalse(client.verify_key_confirmation(client_result, None))

    def test_client_and_server_must_agree_on_server_id(self) -> None:
        curve = Curve.P256
        client = OwlClient(Config(curve=curve, server_id="localhost"))
        server = OwlServer(Config(curve=curve, server_id="impostor"))
        credentials = server.register(client.register(USERNAME, PASSWORD))
        init_request, init_values = client.auth_init(USERNAME, PASSWORD)
        init = server.auth_init(USERNAME, init_request, credentials)
        with self.assertRaises(ZKPVerificationFailure):
            client.auth_finish(init.response, init_values)

    def test_reregistration_replaces_credentials(self) -> None:
        config = Config(curve=Curve.P256, server_id="localhost")
        client_result, server_result = run_exchange(config, "new-password", "new-password")
        self.assertEqual(client_result.key, server_result.key)

    def test_tampered_verifier_fails_authentication(self) -> None:
        config = Config(curve=Curve.P256, server_id="localhost")
        client = OwlClient(config)
        server = OwlServer(config)
        credentials = server.register(client.register(USERNAME, PASSWORD))
        forged = replace(credentials, T=server.group.base_mul(5))

        init_request, init_values = client.auth_init(USERNAME, PASSWORD)
        init = server.auth_init(USERNAME, init_request, forged)
        client_result = client.auth_finish(init.response, init_values)
        with self.assertRaises(AuthenticationFailure):
            server.auth_finish(USERNAME, client_result.finish_request, init.initial)


if __name__ == "__main__":
    unittest.main()
