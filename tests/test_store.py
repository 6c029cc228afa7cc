import os
import tempfile
import threading
import unittest

from owlauth.client import OwlClient
from owlauth.config import Config
from owlauth.errors import DeserializationError
from owlauth.group import Curve
from owlauth.server import OwlServer
from owlauth.store import CredentialStore, LookupStatus, SessionStore

CONFIG = Config(curve=Curve.P256, server_id="localhost")


class TestCredentialStore(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)
        self.path = os.path.join(self.tmpdir.name, "users.json")
        self.store = CredentialStore(self.path, Curve.P256)
        self.client = OwlClient(CONFIG)
        self.server = OwlServer(CONFIG)

    def test_unknown_user_is_none(self) -> None:
        self.assertIsNone(self.store.get("nobody"))
        self.assertFalse(os.path.exists(self.path))

    def test_put_then_get(self) -> None:
        credentials = self.server.register(self.client.register("alice", "pw"))
        self.store.put("alice", credentials)
        self.assertIn("alice", self.store)
        self.assertEqual(CredentialStore(self.path, Curve.P256).get("alice"), credentials)

    def test_reregistration_replaces_record(self) -> None:
        first = self.server.register(self.client.register("alice", "pw"))
        second = self.server.register(self.client.register("alice", "new-pw"))
        self.store.put("alice", first)
        self.store.put("alice", second)
        self.assertEqual(self.store.get("alice"), second)

    def test_remove(self) -> None:
        self.store.put("alice", self.server.register(self.client.register("alice", "pw")))
        self.assertTrue(self.store.remove("alice"))
        self.assertFalse(self.store.remove("alice"))
        self.assertIsNone(self.store.get("alice"))

    def test_concurrent_puts_are_not_lost(self) -> None:
        records = {
            f"user-{i}": self.server.register(self.client.register(f"user-{i}", "pw"))
            for i in range(8)
        }
        threads = [
            threading.Thread(target=self.store.put, args=(name, credentials))
            for name, credentials in records.items()
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        for name, credentials in records.items():
            self.assertEqual(self.store.get(name), credentials)

    def test_corrupt_file_raises(self) -> None:
        with open(self.path, "w", encoding="utf-8") as handle:
            handle.write("{not json")
        with self.assertRaises(DeserializationError):
            self.store.get("alice")

    def test_unexpected_layout_raises(self) -> None:
        with open(self.path, "w", encoding="utf-8") as handle:
            handle.write('{"users": []}')
        with self.assertRaises(DeserializationError):
            self.store.get("alice")

    def test_record_from_another_curve_raises(self) -> None:
        self.store.put("alice", self.server.register(self.client.register("alice", "pw")))
        with self.assertRaises(DeserializationError):
            CredentialStore(self.path, Curve.P384).get("alice")


class TestSessionStore(unittest.TestCase):
    def setUp(self) -> None:
        client = OwlClient(CONFIG)
        server = OwlServer(CONFIG)
        credentials = server.register(client.register("alice", "pw"))
        request, _ = client.auth_init("alice", "pw")
        self.initial = server.auth_init("alice", request, credentials).initial
        self.sessions = SessionStore(Curve.P256)

    def test_transcript_is_single_use(self) -> None:
        session = self.sessions.create("alice", self.initial)
        self.assertEqual(len(self.sessions), 1)

        lookup = self.sessions.take(session)
        self.assertIs(lookup.status, LookupStatus.FOUND)
        self.assertEqual(lookup.username, "alice")
        self.assertEqual(lookup.initial, self.initial)

        replay = self.sessions.take(session)
        self.assertIs(replay.status, LookupStatus.ALREADY_CONSUMED)
        self.assertIsNone(replay.initial)
        self.assertEqual(len(self.sessions), 0)

    def test_unknown_session(self) -> None:
        lookup = self.sessions.take("missing")
        self.assertIs(lookup.status, LookupStatus.NOT_FOUND)
        self.assertFalse(lookup.found)

    def test_session_ids_are_unique(self) -> None:
        first = self.sessions.create("alice", self.initial)
        second = self.sessions.create("alice", self.initial)
        self.assertNotEqual(first, second)

    def test_consumed_history_is_bounded(self) -> None:
        sessions = SessionStore(Curve.P256, history=3)
        ids = [sessions.create("alice", self.initial) for _ in range(10)]
        for session in ids:
            self.assertTrue(sessions.take(session).found)
        self.assertEqual(sessions.consumed_count, 3)
        self.assertEqual(len(sessions), 0)
        self.assertIs(sessions.take(ids[0]).status, LookupStatus.NOT_FOUND)
        self.assertIs(sessions.take(ids[-1]).status, LookupStatus.ALREADY_CONSUMED)

    def test_history_must_be_positive(self) -> None:
        with self.assertRaises(ValueError):
            SessionStore(Curve.P256, history=0)


if __name__ == "__main__":
    unittest.main()
