"""Rows of the validator related database tables."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from decimal import Decimal

from bdindexer.dbtypes.coins import to_null_string

_INT_PATTERN = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


def _parse_int64(value: str) -> Decimal:
    if not _INT_PATTERN.fullmatch(value):
        raise ValueError(f"invalid integer value: {value!r}")
    number = int(value)
    if not _INT64_MIN <= number <= _INT64_MAX:
        raise ValueError(f"integer value out of range: {value!r}")
    return Decimal(number)


@dataclass
class ValidatorData:
    """All the stored data about a single validator."""

    consensus_address: str
    operator_address: str
    consensus_pubkey: str
    self_delegate_address: str
    max_rate: str
    max_change_rate: str
    height: int = 0

    def parsed_max_rate(self) -> Decimal:
        """Return the maximum commission rate; it must be stored as an integer."""
        return _parse_int64(self.max_rate)

    def parsed_max_change_rate(self) -> Decimal:
        """Return the maximum commission change rate; it must be stored as an integer."""
        return _parse_int64(self.max_change_rate)


@dataclass
class ValidatorRow:
    """A row of the validator table."""

    consensus_address: str
    consensus_pubkey: str


@dataclass
class ValidatorInfoRow:
    """A row of the validator_info table."""

    consensus_address: str
    operator_address: str
    self_delegate_address: str
    max_rate: str
    max_change_rate: str
    height: int


@dataclass
class ValidatorDescriptionRow:
    """A row of the validator_description table.

    The avatar URL is not taken into account when comparing rows.
    """

    validator_address: str
    moniker: str | None
    identity: str | None
    avatar_url: str | None = field(compare=False)
    website: str | None
    security_contact: str | None
    details: str | None
    height: int

    @classmethod
    def build(
        cls,
        validator_address: str,
        moniker: str,
        identity: str,
        avatar_url: str,
        website: str,
        security_contact: str,
        details: str,
        height: int,
    ) -> ValidatorDescriptionRow:
        """Build a row, storing blank text values as NULL."""
        return cls(
            validator_address=validator_address,
            moniker=to_null_string(moniker),
            identity=to_null_string(identity),
            avatar_url=to_null_string(avatar_url),
            website=to_null_string(website),
            security_contact=to_null_string(security_contact),
            details=to_null_string(details),
            height=height,
        )


@dataclass
class ValidatorCommissionRow:
    """A row of the validator_commission table."""

    validator_address: str
    commission: str | None
    min_self_delegation: str | None
    height: int

    @classmethod
    def build(
        cls,
        validator_address: str,
        commission: str,
        min_self_delegation: str,
        height: int,
    ) -> ValidatorCommissionRow:
        """Build a row, storing blank text values as NULL."""
        return cls(
            validator_address=validator_address,
            commission=to_null_string(commission),
            min_self_delegation=to_null_string(min_self_delegation),
            height=height,
        )


@dataclass
class ValidatorVotingPowerRow:
    """A row of the validator_voting_power table."""

    validator_address: str
    voting_power: int
    height: int


@dataclass
class ValidatorStatusRow:
    """A row of the validator_status table."""

    status: int
    jailed: bool
    tombstoned: bool
    validator_address: str
    height: int


@dataclass
class DoubleSignVoteRow:
    """A row of the double_sign_vote table."""

    id: int
    vote_type: int
    height: int
    round: int
    block_id: str
    validator_address: str
    validator_index: int
    signature: str


@dataclass
class DoubleSignEvidenceRow:
    """A row of the double_sign_evidence table."""

    height: int
    vote_a_id: int
    vote_b_id: int