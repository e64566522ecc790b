"""Contract tests for the scheduled trigger endpoint."""

from datetime import datetime, timezone
import os
import unittest
from unittest import mock

try:
    from fastapi.testclient import TestClient
except ImportError:  # pragma: no cover - optional dependency
    TestClient = None

try:
    from web import app as web_app
except ImportError:  # pragma: no cover - optional dependency
    web_app = None

from chain_adapter.client import TransactionFailedError
from chain_adapter.tests.fakes import SIGNER, FakeChainClient, chain_error
from run_controller.coordinator import RunCoordinator
from run_controller.locks import SignerLockRegistry

SECRET = "cron-secret"
AUTH = {"Authorization": f"Bearer {SECRET}"}
ENDPOINT = "/api/cron/executor"


@unittest.skipIf(TestClient is None or web_app is None, "FastAPI not available")
class TriggerApiTests(unittest.TestCase):
    def setUp(self) -> None:
        web_app._reset_state()
        self.addCleanup(web_app._reset_state)
        env = mock.patch.dict(os.environ, {"CRON_SECRET": SECRET}, clear=True)
        env.start()
        self.addCleanup(env.stop)
        self.locks = SignerLockRegistry()
        self.client = TestClient(web_app.app)

    def _install(self, chain: FakeChainClient) -> FakeChainClient:
        web_app._set_coordinator(
            RunCoordinator(
                client=chain,
                cron_secret=SECRET,
                locks=self.locks,
                lock_timeout=0.0,
                now=lambda: datetime(2025, 2, 3, 4, 5, 6, tzinfo=timezone.utc),
            )
        )
        return chain

    def test_successful_run_reports_each_action(self) -> None:
        chain = self._install(FakeChainClient(staked=True, position_id=1))
        response = self.client.get(ENDPOINT, headers=AUTH)

        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["timestamp"], "2025-02-03T04:05:06.000Z")
        self.assertEqual([entry["action"] for entry in payload["executed"]], ["rebalance", "claimEmissions"])
        for entry in payload["executed"]:
            self.assertEqual(entry["status"], "success")
            self.assertTrue(entry["txHash"].startswith("0x"))
            self.assertNotIn("error", entry)
        self.assertEqual(chain.writes, ["rebalance", "claimEmissions"])

    def test_failed_action_still_returns_200(self) -> None:
        self._install(
            FakeChainClient(
                staked=False,
                position_id=0,
                write_errors={"rebalance": TransactionFailedError("rebalance submission rejected: out of range")},
            )
        )
        response = self.client.post(ENDPOINT, headers=AUTH)

        self.assertEqual(response.status_code, 200)
        executed = response.json()["executed"]
        self.assertEqual(len(executed), 1)
        self.assertEqual(executed[0]["status"], "failed")
        self.assertIn("out of range", executed[0]["error"])
        self.assertNotIn("txHash", executed[0])

    def test_bad_credential_is_401_without_chain_calls(self) -> None:
        chain = self._install(FakeChainClient())
        for headers in ({}, {"Authorization": "Bearer nope"}, {"Authorization": SECRET}):
            response = self.client.get(ENDPOINT, headers=headers)
            self.assertEqual(response.status_code, 401)
            self.assertEqual(response.json(), {"error": "Unauthorized"})
        self.assertEqual(chain.calls, [])

    def test_missing_role_is_403(self) -> None:
        chain = self._install(FakeChainClient(granted=False))
        response = self.client.get(ENDPOINT, headers=AUTH)

        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json(), {"error": "Signer does not have executor role"})
        self.assertEqual(chain.writes, [])

    def test_state_read_failure_is_500(self) -> None:
        chain = self._install(FakeChainClient(read_errors={"isStaked": chain_error()}))
        response = self.client.get(ENDPOINT, headers=AUTH)

        self.assertEqual(response.status_code, 500)
        self.assertIn("staking flag", response.json()["error"])
        self.assertNotIn("executed", response.json())
        self.assertEqual(chain.writes, [])

    def test_run_in_progress_is_500(self) -> None:
        chain = self._install(FakeChainClient())
        with self.locks.hold(SIGNER, timeout=0):
            response = self.client.get(ENDPOINT, headers=AUTH)

        self.assertEqual(response.status_code, 500)
        self.assertIn("already in progress", response.json()["error"])
        self.assertEqual(chain.calls, [])

    def test_unexpected_error_is_500(self) -> None:
        self._install(FakeChainClient(read_errors={"isStaked": KeyError("abi")}))
        response = self.client.get(ENDPOINT, headers=AUTH)

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["error"], "Executor failed")

    def test_missing_chain_settings_is_500(self) -> None:
        with mock.patch.dict(os.environ, {"CRON_SECRET": SECRET}, clear=True):
            response = self.client.get(ENDPOINT, headers=AUTH)

        self.assertEqual(response.status_code, 500)
        self.assertIn("EXECUTOR_PRIVATE_KEY", response.json()["error"])

    def test_bad_credential_is_401_before_chain_settings_are_loaded(self) -> None:
        with mock.patch.dict(os.environ, {"CRON_SECRET": SECRET}, clear=True):
            response = self.client.get(ENDPOINT, headers={"Authorization": "Bearer wrong"})

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"error": "Unauthorized"})

    def test_malformed_key_does_not_leak_to_unauthenticated_caller(self) -> None:
        env = {
            "CRON_SECRET": SECRET,
            "EXECUTOR_PRIVATE_KEY": "0xnot-a-key",
            "ALM_CONTRACT_ADDRESS": "0x1111111111111111111111111111111111111111",
        }
        with mock.patch.dict(os.environ, env, clear=True):
            with mock.patch.object(web_app, "build_coordinator") as build:
                response = self.client.post(ENDPOINT)

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"error": "Unauthorized"})
        build.assert_not_called()


if __name__ == "__main__":
    unittest.main()
