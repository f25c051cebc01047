"""Interfaces of the chain data sources the actions read from."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Mapping, Protocol, Sequence, runtime_checkable

from bdindexer.dbtypes.coins import Coin, DecCoin

if TYPE_CHECKING:
    from bdindexer.actions.types import PageRequest


@dataclass
class AccountBalance:
    """The balance of an account at a given height."""

    address: str
    balance: list[Coin] = field(default_factory=list)
    height: int = 0


@dataclass
class DelegatorReward:
    """The rewards a delegator has earned from one validator."""

    validator_address: str
    reward: list[DecCoin] = field(default_factory=list)


@runtime_checkable
class BankSource(Protocol):
    """Reads account balances and the token supply."""

    def get_balances(self, addresses: Sequence[str], height: int) -> list[AccountBalance]: ...

    def get_supply(self, height: int) -> list[Coin]: ...

    def get_account_balance(self, address: str, height: int) -> list[Coin]: ...


@runtime_checkable
class DistributionSource(Protocol):
    """Reads rewards, commissions and the community pool."""

    def validator_commission(self, operator_address: str, height: int) -> list[DecCoin]: ...

    def delegator_total_rewards(self, delegator: str, height: int) -> list[DelegatorReward]: ...

    def delegator_withdraw_address(self, delegator: str, height: int) -> str: ...

    def community_pool(self, height: int) -> list[DecCoin]: ...

    def params(self, height: int) -> Mapping[str, Any]: ...


@runtime_checkable
class StakingSource(Protocol):
    """Reads delegations and staking parameters.

    Results are mappings shaped like the chain query responses:
    delegations come as {"delegation_responses": [{"delegation": {...}, "balance": Coin}],
    "pagination": ...}; unbonding delegations as {"unbonding_responses": [{"delegator_address",
    "validator_address", "entries": [{..., "balance": int}]}], "pagination": ...};
    redelegations as {"redelegation_responses": [{"redelegation": {...}, "entries":
    [{"redelegation_entry": {"completion_time": datetime, ...}, "balance": int}]}],
    "pagination": ...}; parameters as {"bond_denom": str, ...}.
    """

    def get_delegations_with_pagination(
        self, height: int, delegator: str, pagination: PageRequest | None
    ) -> Mapping[str, Any]: ...

    def get_validator_delegations_with_pagination(
        self, height: int, validator: str, pagination: PageRequest | None
    ) -> Mapping[str, Any]: ...

    def get_unbonding_delegations(
        self, height: int, delegator: str, pagination: PageRequest | None
    ) -> Mapping[str, Any]: ...

    def get_unbonding_delegations_from_validator(
        self, height: int, validator: str, pagination: PageRequest | None
    ) -> Mapping[str, Any]: ...

    def get_redelegations(
        self,
        height: int,
        *,
        delegator: str = "",
        src_validator: str = "",
        pagination: PageRequest | None = None,
    ) -> Mapping[str, Any]: ...

    def get_params(self, height: int) -> Mapping[str, Any]: ...


@dataclass
class Sources:
    """The data sources available to the action handlers."""

    bank: BankSource
    distribution: DistributionSource
    staking: StakingSource

    def __post_init__(self) -> None:
        for name, protocol in (
            ("bank", BankSource),
            ("distribution", DistributionSource),
            ("staking", StakingSource),
        ):
            if not isinstance(getattr(self, name), protocol):
                raise TypeError(f"the {name} source does not implement {protocol.__name__}")