"""Handlers answering the action requests with data read from the chain."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from bdindexer.actions.sources import Sources
from bdindexer.actions.types import (
    Address,
    Balance,
    CoinAmount,
    Context,
    Delegation,
    DelegationResponse,
    DelegationReward,
    Payload,
    Redelegation,
    RedelegationEntry,
    RedelegationResponse,
    UnbondingDelegation,
    UnbondingDelegationResponse,
    ValidatorCommissionAmount,
    convert_coins,
    convert_dec_coins,
)
from bdindexer.dbtypes.coins import Coin

logger = logging.getLogger(__name__)

# Text carried by the errors of queries about delegators the chain does not know.
_NOT_FOUND = "NotFound"


class ActionError(Exception):
    """Raised when an action cannot be executed."""


def _sources(ctx: Context) -> Sources:
    if ctx.sources is None:
        raise ActionError("no data sources are available")
    return ctx.sources


def _delegations(response: Mapping[str, Any]) -> DelegationResponse:
    delegations = [
        Delegation(
            delegator_address=item["delegation"]["delegator_address"],
            validator_address=item["delegation"]["validator_address"],
            coins=convert_coins([item["balance"]]),
        )
        for item in response.get("delegation_responses") or ()
    ]
    return DelegationResponse(
        delegations=delegations, pagination=response.get("pagination")
    )


def _unbonding_delegations(response: Mapping[str, Any]) -> UnbondingDelegationResponse:
    unbondings = [
        UnbondingDelegation(
            delegator_address=item["delegator_address"],
            validator_address=item["validator_address"],
            entries=list(item.get("entries") or ()),
        )
        for item in response.get("unbonding_responses") or ()
    ]
    return UnbondingDelegationResponse(
        unbonding_delegations=unbondings, pagination=response.get("pagination")
    )


def _redelegations(response: Mapping[str, Any]) -> RedelegationResponse:
    redelegations = []
    for item in response.get("redelegation_responses") or ():
        redelegation = item["redelegation"]
        redelegations.append(
            Redelegation(
                delegator_address=redelegation["delegator_address"],
                validator_src_address=redelegation["validator_src_address"],
                validator_dst_address=redelegation["validator_dst_address"],
                entries=[
                    RedelegationEntry(
                        completion_time=entry["redelegation_entry"]["completion_time"],
                        balance=entry["balance"],
                    )
                    for entry in item.get("entries") or ()
                ],
            )
        )
    return RedelegationResponse(
        redelegations=redelegations, pagination=response.get("pagination")
    )


def _total_balance(balances: Iterable[Coin]) -> list[Coin]:
    """Add up the delegation balances.

    Each balance is added to every earlier total of its denomination, and an
    extra entry is appended for every earlier total of another denomination.
    """
    totals: list[Coin] = []
    for balance in balances:
        if not totals:
            totals.append(Coin(balance.denom, balance.amount))
            continue
        seen = list(totals)
        for index, coin in enumerate(seen):
            if coin.denom == balance.denom:
                current = totals[index]
                totals[index] = Coin(current.denom, current.amount + balance.amount)
            else:
                totals.append(Coin(balance.denom, balance.amount))
    return totals


# ---------------------------------------------------------------------------


def account_balance_handler(ctx: Context, payload: Payload) -> Balance:
    """Return the balance of the payload address."""
    logger.debug(
        "executing account balance action for %s at height %d",
        payload.input.address,
        payload.input.height,
    )
    height = ctx.resolve_height(payload)
    sources = _sources(ctx)
    try:
        balance = sources.bank.get_account_balance(payload.input.address, height)
    except Exception as err:
        raise ActionError(f"error while getting account balance: {err}") from err
    return Balance(coins=convert_coins(balance))


def delegation_handler(ctx: Context, payload: Payload) -> DelegationResponse | dict:
    """Return the delegations of the payload address; an empty object if it is unknown."""
    logger.debug("executing delegations action for %s", payload.input.address)
    height = ctx.resolve_height(payload)
    sources = _sources(ctx)
    try:
        response = sources.staking.get_delegations_with_pagination(
            height, payload.input.address, payload.pagination()
        )
    except Exception as err:
        if _NOT_FOUND in str(err):
            return {}
        raise ActionError(f"error while getting delegator delegations: {err}") from err
    return _delegations(response)


def total_delegation_amount_handler(ctx: Context, payload: Payload) -> Balance | dict:
    """Return the total delegated amount of the payload address."""
    logger.debug(
        "executing total delegation amount action for %s at height %d",
        payload.input.address,
        payload.input.height,
    )
    height = ctx.resolve_height(payload)
    sources = _sources(ctx)
    try:
        response = sources.staking.get_delegations_with_pagination(
            height, payload.input.address, None
        )
    except Exception as err:
        if _NOT_FOUND in str(err):
            return {}
        raise ActionError(f"error while getting delegator delegations: {err}") from err
    balances = [item["balance"] for item in response.get("delegation_responses") or ()]
    return Balance(coins=convert_coins(_total_balance(balances)))


def delegation_reward_handler(ctx: Context, payload: Payload) -> list[DelegationReward]:
    """Return the rewards of the payload address, one entry per validator."""
    logger.debug(
        "executing delegation rewards action for %s at height %d",
        payload.input.address,
        payload.input.height,
    )
    height = ctx.resolve_height(payload)
    sources = _sources(ctx)
    try:
        rewards = sources.distribution.delegator_total_rewards(payload.input.address, height)
    except Exception as err:
        raise ActionError(f"error while getting delegator total rewards: {err}") from err
    return [
        DelegationReward(
            coins=convert_dec_coins(reward.reward),
            validator_address=reward.validator_address,
        )
        for reward in rewards
    ]


def delegator_withdraw_address_handler(ctx: Context, payload: Payload) -> Address:
    """Return the current withdraw address of the payload address."""
    logger.debug("executing delegator withdraw address action for %s", payload.input.address)
    height = ctx.resolve_height(None)
    sources = _sources(ctx)
    try:
        address = sources.distribution.delegator_withdraw_address(
            payload.input.address, height
        )
    except Exception as err:
        raise ActionError(f"error while getting delegator withdraw address: {err}") from err
    return Address(address=address)


def redelegation_handler(ctx: Context, payload: Payload) -> RedelegationResponse:
    """Return the redelegations of the payload address."""
    logger.debug(
        "executing redelegations action for %s at height %d",
        payload.input.address,
        payload.input.height,
    )
    height = ctx.resolve_height(payload)
    sources = _sources(ctx)
    try:
        response = sources.staking.get_redelegations(
            height, delegator=payload.input.address, pagination=payload.pagination()
        )
    except Exception as err:
        raise ActionError(f"error while getting delegator redelegations: {err}") from err
    return _redelegations(response)


def unbonding_delegations_total_handler(ctx: Context, payload: Payload) -> Balance:
    """Return the total amount the payload address is unbonding, in the bond denomination."""
    logger.debug(
        "executing unbonding delegation total action for %s at height %d",
        payload.input.address,
        payload.input.height,
    )
    height = ctx.resolve_height(payload)
    sources = _sources(ctx)
    try:
        response = sources.staking.get_unbonding_delegations(
            height, payload.input.address, None
        )
    except Exception as err:
        raise ActionError(
            f"error while getting delegator unbonding delegations: {err}"
        ) from err
    try:
        params = sources.staking.get_params(height)
    except Exception as err:
        raise ActionError(f"error while getting bond denom type: {err}") from err

    total = sum(
        entry["balance"]
        for unbonding in response.get("unbonding_responses") or ()
        for entry in unbonding.get("entries") or ()
    )
    return Balance(coins=[CoinAmount(amount=str(total), denom=params["bond_denom"])])


def unbonding_delegations_handler(
    ctx: Context, payload: Payload
) -> UnbondingDelegationResponse:
    """Return the unbonding delegations of the payload address."""
    logger.debug(
        "executing unbonding delegations action for %s at height %d",
        payload.input.address,
        payload.input.height,
    )
    height = ctx.resolve_height(payload)
    sources = _sources(ctx)
    try:
        response = sources.staking.get_unbonding_delegations(
            height, payload.input.address, payload.pagination()
        )
    except Exception as err:
        raise ActionError(
            f"error while getting delegator unbonding delegations: {err}"
        ) from err
    return _unbonding_delegations(response)


def validator_commission_amount_handler(
    ctx: Context, payload: Payload
) -> ValidatorCommissionAmount:
    """Return the current commission of the validator at the payload address."""
    logger.debug("executing validator commission action for %s", payload.input.address)
    height = ctx.resolve_height(None)
    sources = _sources(ctx)
    try:
        commission = sources.distribution.validator_commission(payload.input.address, height)
    except Exception as err:
        raise ActionError(f"error while getting validator commission: {err}") from err
    return ValidatorCommissionAmount(coins=convert_dec_coins(commission))


def validator_delegation_handler(ctx: Context, payload: Payload) -> DelegationResponse:
    """Return the delegations made to the validator at the payload address."""
    logger.debug(
        "executing validator delegation action for %s at height %d",
        payload.input.address,
        payload.input.height,
    )
    height = ctx.resolve_height(payload)
    sources = _sources(ctx)
    try:
        response = sources.staking.get_validator_delegations_with_pagination(
            height, payload.input.address, payload.pagination()
        )
    except Exception as err:
        raise ActionError(f"error while getting validator delegations: {err}") from err
    return _delegations(response)


def validator_redelegations_from_handler(
    ctx: Context, payload: Payload
) -> RedelegationResponse:
    """Return the redelegations leaving the validator at the payload address."""
    logger.debug(
        "executing validator redelegation action for %s at height %d",
        payload.input.address,
        payload.input.height,
    )
    height = ctx.resolve_height(payload)
    sources = _sources(ctx)
    try:
        response = sources.staking.get_redelegations(
            height, src_validator=payload.input.address, pagination=payload.pagination()
        )
    except Exception as err:
        raise ActionError(
            f"error while getting redelegations from validator: {err}"
        ) from err
    return _redelegations(response)


def validator_unbonding_delegations_handler(
    ctx: Context, payload: Payload
) -> UnbondingDelegationResponse:
    """Return the unbonding delegations from the validator at the payload address."""
    logger.debug(
        "executing validator unbonding delegations action for %s at height %d",
        payload.input.address,
        payload.input.height,
    )
    height = ctx.resolve_height(payload)
    sources = _sources(ctx)
    try:
        response = sources.staking.get_unbonding_delegations_from_validator(
            height, payload.input.address, payload.pagination()
        )
    except Exception as err:
        raise ActionError(
            "error while getting all unbonding delegations from validator "
            f"{payload.input.address}: {err}"
        ) from err
    return _unbonding_delegations(response)