"""Sequential execution, failure isolation and deadline handling."""

import unittest

from chain_adapter.client import ConfirmationTimeoutError, TransactionFailedError
from chain_adapter.tests.fakes import SIGNER, FakeChainClient
from maintenance_engine.executor import ActionExecutor, ExecutionBlockedError
from maintenance_engine.models import (
    Action,
    ActionKind,
    ActionStatus,
    ActionTransitionError,
    AuthorizationContext,
)

GRANTED = AuthorizationContext(signer_identity=SIGNER, required_role_id="0x01", granted=True)
DENIED = AuthorizationContext(signer_identity=SIGNER, required_role_id="0x01", granted=False)


def _plan(*kinds):
    return tuple(Action(kind) for kind in kinds)


class ActionExecutorTests(unittest.TestCase):
    def test_all_actions_confirmed_in_order(self) -> None:
        client = FakeChainClient()
        executor = ActionExecutor(client, confirmation_timeout=60)

        actions = executor.execute(_plan(ActionKind.REBALANCE, ActionKind.CLAIM_EMISSIONS), GRANTED)

        self.assertEqual(client.writes, ["rebalance", "claimEmissions"])
        self.assertTrue(all(action.status == ActionStatus.CONFIRMED for action in actions))
        self.assertNotEqual(actions[0].tx_reference, actions[1].tx_reference)

    def test_rebalance_failure_does_not_block_later_actions(self) -> None:
        client = FakeChainClient(
            write_errors={"rebalance": TransactionFailedError("rebalance reverted in block 9", tx_hash="0xdead")}
        )
        executor = ActionExecutor(client)

        actions = executor.execute(_plan(ActionKind.REBALANCE, ActionKind.CLAIM_EMISSIONS), GRANTED)

        self.assertEqual(client.writes, ["rebalance", "claimEmissions"])
        self.assertEqual(actions[0].status, ActionStatus.FAILED)
        self.assertEqual(actions[0].tx_reference, "0xdead")
        self.assertIn("reverted", actions[0].error_detail)
        self.assertEqual(actions[1].status, ActionStatus.CONFIRMED)

    def test_confirmation_timeout_marks_failed(self) -> None:
        client = FakeChainClient(
            write_errors={"collectFees": ConfirmationTimeoutError("collectFees not confirmed within 60s", tx_hash="0xbeef")}
        )
        actions = ActionExecutor(client).execute(_plan(ActionKind.REBALANCE, ActionKind.COLLECT_FEES), GRANTED)

        self.assertEqual(actions[1].status, ActionStatus.FAILED)
        self.assertIn("timed out", actions[1].error_detail)
        self.assertEqual(actions[1].tx_reference, "0xbeef")

    def test_unexpected_error_is_isolated(self) -> None:
        client = FakeChainClient(write_errors={"rebalance": KeyError("nonce")})
        actions = ActionExecutor(client).execute(_plan(ActionKind.REBALANCE, ActionKind.COLLECT_FEES), GRANTED)

        self.assertEqual(actions[0].status, ActionStatus.FAILED)
        self.assertEqual(actions[1].status, ActionStatus.CONFIRMED)

    def test_denied_authorization_submits_nothing(self) -> None:
        client = FakeChainClient()
        plan = _plan(ActionKind.REBALANCE)
        with self.assertRaises(ExecutionBlockedError):
            ActionExecutor(client).execute(plan, DENIED)
        self.assertEqual(client.writes, [])
        self.assertEqual(plan[0].status, ActionStatus.NOT_ATTEMPTED)

    def test_already_attempted_plan_is_rejected_before_any_submission(self) -> None:
        client = FakeChainClient()
        plan = _plan(ActionKind.REBALANCE, ActionKind.COLLECT_FEES)
        plan[1].mark_submitted()
        with self.assertRaises(ActionTransitionError):
            ActionExecutor(client).execute(plan, GRANTED)
        self.assertEqual(client.writes, [])

    def test_timeout_is_bounded_by_run_deadline(self) -> None:
        now = [100.0]
        client = FakeChainClient()
        executor = ActionExecutor(client, confirmation_timeout=120, clock=lambda: now[0])

        executor.execute(_plan(ActionKind.REBALANCE), GRANTED, deadline=130.0)

        self.assertEqual(client.timeouts, [30.0])

    def test_exhausted_deadline_fails_remaining_actions(self) -> None:
        now = [100.0]

        def advance(_name):
            now[0] += 50.0

        client = FakeChainClient(on_send=advance)
        executor = ActionExecutor(client, confirmation_timeout=120, clock=lambda: now[0])

        actions = executor.execute(
            _plan(ActionKind.REBALANCE, ActionKind.CLAIM_EMISSIONS),
            GRANTED,
            deadline=140.0,
        )

        self.assertEqual(client.writes, ["rebalance"])
        self.assertEqual(actions[0].status, ActionStatus.CONFIRMED)
        self.assertEqual(actions[1].status, ActionStatus.FAILED)
        self.assertIn("deadline", actions[1].error_detail)


if __name__ == "__main__":
    unittest.main()
