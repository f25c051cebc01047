"""Rows of the simpler database tables."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable

from bdindexer.dbtypes.coins import DbCoins, DbDecCoins


@dataclass
class AccountRow:
    """A row of the account table."""

    address: str


@dataclass
class ModuleRow:
    """A row of the modules table."""

    module: str


def module_rows(names: Iterable[str]) -> list[ModuleRow]:
    """Build one ModuleRow per module name, keeping the order."""
    return [ModuleRow(name) for name in names]


@dataclass
class SupplyRow:
    """A row of the supply table."""

    coins: DbCoins
    height: int
    one_row_id: bool = field(default=True, compare=False)


@dataclass
class CommunityPoolRow:
    """A row of the community_pool table."""

    coins: DbDecCoins
    height: int
    one_row_id: bool = field(default=True, compare=False)


@dataclass
class DistributionParamsRow:
    """A row of the distribution_params table."""

    params: str
    height: int
    one_row_id: bool = field(default=True, compare=False)


@dataclass
class InflationRow:
    """A row of the inflation table."""

    value: float
    height: int
    one_row_id: bool = field(default=True, compare=False)


@dataclass
class MintParamsRow:
    """A row of the mint_params table."""

    params: str
    height: int
    one_row_id: bool = field(default=True, compare=False)


@dataclass
class StakingPoolRow:
    """A row of the staking_pool table."""

    bonded_tokens: int
    not_bonded_tokens: int
    height: int
    one_row_id: bool = field(default=True, compare=False)


@dataclass
class StakingParamsRow:
    """A row of the staking_params table."""

    params: str
    height: int
    one_row_id: bool = field(default=True, compare=False)


@dataclass
class FeeAllowanceRow:
    """A row of the fee_grant_allowance table."""

    id: int
    grantee: str
    granter: str
    allowance: str
    height: int


@dataclass
class TokenUnitRow:
    """A row of the token_unit table."""

    token_name: str
    denom: str
    exponent: int
    aliases: list[str] = field(default_factory=list)
    price_id: str | None = None


@dataclass
class TokenRow:
    """A row of the token table."""

    name: str
    traded_unit: str


@dataclass
class TokenPriceRow:
    """A row of the token_price table."""

    name: str
    price: float
    market_cap: int
    timestamp: datetime
    id: str = field(default="", compare=False)


@dataclass
class ValidatorSigningInfoRow:
    """A row of the validator_signing_info table."""

    validator_address: str
    start_height: int
    index_offset: int
    jailed_until: datetime
    tombstoned: bool
    missed_blocks_counter: int
    height: int


@dataclass
class SlashingParamsRow:
    """A row of the slashing_params table."""

    params: str
    height: int
    one_row_id: bool = field(default=True, compare=False)


@dataclass
class GenesisRow:
    """A row of the genesis table."""

    chain_id: str
    time: datetime
    initial_height: int
    one_row_id: bool = field(default=True, compare=False)


@dataclass
class ConsensusRow:
    """A row of the consensus table."""

    height: int
    round: int
    step: str
    one_row_id: bool = field(default=True, compare=False)


@dataclass
class AverageTimeRow:
    """A row of the average block time tables."""

    average_time: float
    height: int
    one_row_id: bool = field(default=True, compare=False)


@dataclass
class BlockRow:
    """A row of the block table."""

    height: int
    hash: str
    num_txs: int
    total_gas: int
    proposer_address: str | None
    pre_commits: int
    timestamp: datetime