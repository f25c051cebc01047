"""Rows of the governance database tables."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from bdindexer.dbtypes.coins import DbCoins


@dataclass
class GovParamsRow:
    """A row of the gov_params table."""

    deposit_params: str
    voting_params: str
    tally_params: str
    height: int
    one_row_id: bool = field(default=True, compare=False)


@dataclass
class ProposalRow:
    """A row of the proposal table.

    The proposal content is not taken into account when comparing rows.
    """

    proposal_id: int
    proposal_route: str
    proposal_type: str
    title: str
    description: str
    content: str = field(compare=False)
    submit_time: datetime
    deposit_end_time: datetime
    voting_start_time: datetime
    voting_end_time: datetime
    proposer: str
    status: str


@dataclass
class TallyResultRow:
    """A row of the proposal_tally_result table."""

    proposal_id: int
    yes: str
    abstain: str
    no: str
    no_with_veto: str
    height: int


@dataclass
class VoteRow:
    """A row of the proposal_vote table."""

    proposal_id: int
    voter: str
    option: str
    height: int


@dataclass
class DepositRow:
    """A row of the proposal_deposit table."""

    proposal_id: int
    depositor: str
    amount: DbCoins
    height: int


@dataclass
class ProposalStakingPoolSnapshotRow:
    """A snapshot of the staking pool taken for a proposal."""

    proposal_id: int
    bonded_tokens: int
    not_bonded_tokens: int
    height: int


@dataclass
class ProposalValidatorVotingPowerSnapshotRow:
    """A snapshot of a validator voting power taken for a proposal."""

    id: int
    proposal_id: int
    validator_address: str
    voting_power: int
    status: int
    jailed: bool
    height: int