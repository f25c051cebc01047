import json
import signal
import threading
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from bdindexer.actions.server import ACTION_HANDLERS, register_handlers, run_actions
from bdindexer.actions.sources import DelegatorReward, Sources
from bdindexer.actions.types import Context
from bdindexer.actions.worker import ActionsWorker
from bdindexer.dbtypes.coins import Coin, DecCoin


class FakeNode:
    def __init__(self):
        self.stopped = False

    def latest_height(self):
        return 10

    def stop(self):
        self.stopped = True


class FakeChain:
    def get_balances(self, addresses, height):
        return []

    def get_supply(self, height):
        return []

    def get_account_balance(self, address, height):
        return [Coin("uatom", 10)]

    def validator_commission(self, operator_address, height):
        return [DecCoin("uatom", Decimal("1"))]

    def delegator_total_rewards(self, delegator, height):
        return [DelegatorReward("val", [DecCoin("uatom", Decimal("1"))])]

    def delegator_withdraw_address(self, delegator, height):
        return "cosmos1withdraw"

    def community_pool(self, height):
        return []

    def params(self, height):
        return {}

    def _delegations(self):
        return {
            "delegation_responses": [
                {
                    "delegation": {"delegator_address": "del", "validator_address": "val"},
                    "balance": Coin("uatom", 4),
                }
            ],
            "pagination": None,
        }

    def _unbondings(self):
        return {
            "unbonding_responses": [
                {"delegator_address": "del", "validator_address": "val", "entries": [{"balance": 2}]}
            ]
        }

    def get_delegations_with_pagination(self, height, delegator, pagination):
        return self._delegations()

    def get_validator_delegations_with_pagination(self, height, validator, pagination):
        return self._delegations()

    def get_unbonding_delegations(self, height, delegator, pagination):
        return self._unbondings()

    def get_unbonding_delegations_from_validator(self, height, validator, pagination):
        return self._unbondings()

    def get_redelegations(self, height, *, delegator="", src_validator="", pagination=None):
        return {
            "redelegation_responses": [
                {
                    "redelegation": {
                        "delegator_address": "del",
                        "validator_src_address": "src",
                        "validator_dst_address": "dst",
                    },
                    "entries": [
                        {
                            "redelegation_entry": {
                                "completion_time": datetime(2022, 1, 1, tzinfo=timezone.utc)
                            },
                            "balance": 3,
                        }
                    ],
                }
            ]
        }

    def get_params(self, height):
        return {"bond_denom": "uatom"}


def make_worker(node=None):
    chain = FakeChain()
    context = Context(node=node or FakeNode(), sources=Sources(chain, chain, chain))
    return ActionsWorker(context)


def test_register_handlers_serves_every_path():
    worker = make_worker()
    register_handlers(worker)
    statuses = {path: worker.dispatch(path, b'{"input": {"address": "del"}}')[0] for path in ACTION_HANDLERS}
    assert statuses == {path: 200 for path in ACTION_HANDLERS}
    assert len(ACTION_HANDLERS) == 12


def test_registered_account_balance_reply():
    worker = make_worker()
    register_handlers(worker)
    status, content_type, body = worker.dispatch("/account_balance", b'{"input": {}}')
    assert status == 200
    assert content_type == "application/json"
    assert json.loads(body) == {"coins": [{"amount": "10", "denom": "uatom"}]}


def test_unregistered_path_is_not_found():
    worker = make_worker()
    register_handlers(worker)
    assert worker.dispatch("/unknown", b"{}")[0] == 404


def test_register_handlers_twice_fails():
    worker = make_worker()
    register_handlers(worker)
    with pytest.raises(ValueError):
        register_handlers(worker)


def test_run_actions_stops_on_sigterm():
    node = FakeNode()
    worker = make_worker(node)
    previous = signal.getsignal(signal.SIGTERM)
    timer = threading.Timer(0.3, signal.raise_signal, (signal.SIGTERM,))
    timer.start()
    run_actions(worker, 0)
    timer.join()
    assert node.stopped is True
    assert signal.getsignal(signal.SIGTERM) is previous