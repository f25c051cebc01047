"""Registration of the action handlers and the serving loop."""

from __future__ import annotations

import logging
import signal
import threading

from bdindexer.actions import handlers
from bdindexer.actions.types import ActionHandler
from bdindexer.actions.worker import ActionsWorker

logger = logging.getLogger(__name__)

ACTION_HANDLERS: dict[str, ActionHandler] = {
    # Bank
    "/account_balance": handlers.account_balance_handler,
    # Distribution
    "/delegation_reward": handlers.delegation_reward_handler,
    "/delegator_withdraw_address": handlers.delegator_withdraw_address_handler,
    "/validator_commission_amount": handlers.validator_commission_amount_handler,
    # Staking delegator
    "/delegation": handlers.delegation_handler,
    "/delegation_total": handlers.total_delegation_amount_handler,
    "/unbonding_delegation": handlers.unbonding_delegations_handler,
    "/unbonding_delegation_total": handlers.unbonding_delegations_total_handler,
    "/redelegation": handlers.redelegation_handler,
    # Staking validator
    "/validator_delegations": handlers.validator_delegation_handler,
    "/validator_redelegations_from": handlers.validator_redelegations_from_handler,
    "/validator_unbonding_delegations": handlers.validator_unbonding_delegations_handler,
}

_STOP_SIGNALS = (signal.SIGTERM, signal.SIGINT)


def register_handlers(worker: ActionsWorker) -> None:
    """Register every action handler on the worker."""
    for path, handler in ACTION_HANDLERS.items():
        worker.register_handler(path, handler)


def run_actions(worker: ActionsWorker, port: int) -> None:
    """Serve the worker on port until SIGTERM or SIGINT arrives, then stop the node.

    The signals are only trapped when called from the main thread.
    """
    stop = threading.Event()
    server = worker.make_server("", port)
    thread = threading.Thread(target=server.serve_forever, daemon=True)

    previous = {}
    if threading.current_thread() is threading.main_thread():
        for signum in _STOP_SIGNALS:
            previous[signum] = signal.signal(signum, lambda *_: stop.set())

    thread.start()
    logger.info("serving actions on port %d", server.server_address[1])
    try:
        while not stop.wait(0.2):
            pass
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)
        server.shutdown()
        server.server_close()
        thread.join()
        stop_node = getattr(worker.context.node, "stop", None)
        if callable(stop_node):
            stop_node()