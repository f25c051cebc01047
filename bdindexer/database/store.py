"""Storage of validator data inside an SQLite database."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, replace
from decimal import Decimal
from os import PathLike
from typing import Any, Iterable, Sequence

from bdindexer.dbtypes.coins import format_dec, to_null_string, to_string
from bdindexer.dbtypes.staking import ValidatorData

DO_NOT_MODIFY = "[do-not-modify]"

_MAX_MONIKER_LENGTH = 70
_MAX_IDENTITY_LENGTH = 3000
_MAX_WEBSITE_LENGTH = 140
_MAX_SECURITY_CONTACT_LENGTH = 140
_MAX_DETAILS_LENGTH = 280

_BECH32_CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"
_BECH32_GENERATOR = (0x3B6A57B2, 0x26508E6D, 0x1EA119FA, 0x3D4233DD, 0x2A1462B3)
_BECH32_MAX_LENGTH = 1023
_MAX_ADDRESS_BYTES = 255

_SCHEMA = """
CREATE TABLE IF NOT EXISTS account (
    address TEXT NOT NULL PRIMARY KEY
);
CREATE TABLE IF NOT EXISTS validator (
    consensus_address TEXT NOT NULL PRIMARY KEY,
    consensus_pubkey  TEXT NOT NULL UNIQUE
);
CREATE TABLE IF NOT EXISTS validator_info (
    consensus_address     TEXT    NOT NULL UNIQUE,
    operator_address      TEXT    NOT NULL UNIQUE,
    self_delegate_address TEXT,
    max_change_rate       TEXT    NOT NULL,
    max_rate              TEXT    NOT NULL,
    height                INTEGER NOT NULL
);
CREATE TABLE IF NOT EXISTS validator_description (
    validator_address TEXT    NOT NULL PRIMARY KEY,
    moniker           TEXT,
    identity          TEXT,
    avatar_url        TEXT,
    website           TEXT,
    security_contact  TEXT,
    details           TEXT,
    height            INTEGER NOT NULL
);
CREATE TABLE IF NOT EXISTS validator_commission (
    validator_address   TEXT    NOT NULL PRIMARY KEY,
    commission          TEXT    NOT NULL,
    min_self_delegation TEXT    NOT NULL,
    height              INTEGER NOT NULL
);
CREATE TABLE IF NOT EXISTS validator_voting_power (
    validator_address TEXT    NOT NULL PRIMARY KEY,
    voting_power      INTEGER NOT NULL,
    height            INTEGER NOT NULL
);
CREATE TABLE IF NOT EXISTS validator_status (
    validator_address TEXT    NOT NULL PRIMARY KEY,
    status            INTEGER NOT NULL,
    jailed            BOOLEAN NOT NULL,
    tombstoned        BOOLEAN NOT NULL,
    height            INTEGER NOT NULL
);
CREATE TABLE IF NOT EXISTS double_sign_vote (
    id                INTEGER PRIMARY KEY AUTOINCREMENT,
    type              INTEGER NOT NULL,
    height            INTEGER NOT NULL,
    round             INTEGER NOT NULL,
    block_id          TEXT    NOT NULL,
    validator_address TEXT    NOT NULL,
    validator_index   INTEGER NOT NULL,
    signature         TEXT    NOT NULL,
    UNIQUE (block_id, validator_address)
);
CREATE TABLE IF NOT EXISTS double_sign_evidence (
    height    INTEGER NOT NULL,
    vote_a_id INTEGER NOT NULL,
    vote_b_id INTEGER NOT NULL,
    UNIQUE (vote_a_id, vote_b_id)
);
CREATE TABLE IF NOT EXISTS modules (
    module_name TEXT NOT NULL PRIMARY KEY
);
"""


class DatabaseError(Exception):
    """Raised when data cannot be stored in or read from the database."""


# ---------------------------------------------------------------------------


def _bech32_polymod(values: Iterable[int]) -> int:
    checksum = 1
    for value in values:
        top = checksum >> 25
        checksum = ((checksum & 0x1FFFFFF) << 5) ^ value
        for bit, generator in enumerate(_BECH32_GENERATOR):
            if (top >> bit) & 1:
                checksum ^= generator
    return checksum


def _hrp_expand(hrp: str) -> list[int]:
    return [ord(char) >> 5 for char in hrp] + [0] + [ord(char) & 31 for char in hrp]


def _convert_bits(data: Iterable[int], from_bits: int, to_bits: int) -> list[int]:
    accumulator = 0
    bits = 0
    result = []
    max_value = (1 << to_bits) - 1
    for value in data:
        accumulator = (accumulator << from_bits) | value
        bits += from_bits
        while bits >= to_bits:
            bits -= to_bits
            result.append((accumulator >> bits) & max_value)
    if bits >= from_bits or (accumulator << (to_bits - bits)) & max_value:
        raise DatabaseError("invalid padding in bech32 data")
    return result


def _validate_bech32_address(address: str, prefix: str) -> str:
    """Check that the address is valid bech32 with the given prefix; return it normalised."""
    if not address.strip():
        raise DatabaseError("empty address string is not allowed")
    if len(address) > _BECH32_MAX_LENGTH:
        raise DatabaseError(f"invalid bech32 string length {len(address)}")
    if any(not 33 <= ord(char) <= 126 for char in address):
        raise DatabaseError(f"invalid character in bech32 string: {address!r}")
    if address.lower() != address and address.upper() != address:
        raise DatabaseError(f"mixed case in bech32 string: {address!r}")

    lowered = address.lower()
    separator = lowered.rfind("1")
    if separator < 1 or separator + 7 > len(lowered):
        raise DatabaseError(f"invalid separator index in bech32 string: {address!r}")

    hrp, data_part = lowered[:separator], lowered[separator + 1 :]
    try:
        data = [_BECH32_CHARSET.index(char) for char in data_part]
    except ValueError:
        raise DatabaseError(f"invalid character in bech32 data: {address!r}") from None
    if _bech32_polymod(_hrp_expand(hrp) + data) != 1:
        raise DatabaseError(f"invalid bech32 checksum: {address!r}")
    if hrp != prefix:
        raise DatabaseError(f"invalid Bech32 prefix; expected {prefix}, got {hrp}")

    payload = _convert_bits(data[:-6], 5, 8)
    if not payload:
        raise DatabaseError("addresses cannot be empty")
    if len(payload) > _MAX_ADDRESS_BYTES:
        raise DatabaseError(
            f"address max length is {_MAX_ADDRESS_BYTES}, got {len(payload)}"
        )
    return lowered


# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Description:
    """The public description of a validator."""

    moniker: str = ""
    identity: str = ""
    website: str = ""
    security_contact: str = ""
    details: str = ""

    def ensure_length(self) -> Description:
        """Return this description, raising ValueError if a field is too long."""
        limits = (
            ("moniker", self.moniker, _MAX_MONIKER_LENGTH),
            ("identity", self.identity, _MAX_IDENTITY_LENGTH),
            ("website", self.website, _MAX_WEBSITE_LENGTH),
            ("security contact", self.security_contact, _MAX_SECURITY_CONTACT_LENGTH),
            ("details", self.details, _MAX_DETAILS_LENGTH),
        )
        for name, value, limit in limits:
            length = len(value.encode())
            if length > limit:
                raise ValueError(f"invalid {name} length; got: {length}, max: {limit}")
        return self

    def update(self, other: Description) -> Description:
        """Return this description with the fields of other that are meant to change."""

        def pick(current: str, new: str) -> str:
            return current if new == DO_NOT_MODIFY else new

        return Description(
            moniker=pick(self.moniker, other.moniker),
            identity=pick(self.identity, other.identity),
            website=pick(self.website, other.website),
            security_contact=pick(self.security_contact, other.security_contact),
            details=pick(self.details, other.details),
        ).ensure_length()


@dataclass(frozen=True)
class ValidatorDescription:
    """A description of the validator having the given operator address."""

    operator_address: str
    description: Description
    avatar_url: str
    height: int


@dataclass(frozen=True)
class ValidatorCommission:
    """A commission update for the validator having the given operator address."""

    validator_address: str
    commission: Decimal | None
    min_self_delegation: int | None
    height: int


@dataclass(frozen=True)
class ValidatorVotingPower:
    """The voting power of a validator at a given height."""

    consensus_address: str
    voting_power: int
    height: int


@dataclass(frozen=True)
class ValidatorStatus:
    """The status of a validator at a given height."""

    consensus_address: str
    consensus_pubkey: str
    status: int
    jailed: bool
    tombstoned: bool
    height: int


@dataclass(frozen=True)
class DoubleSignVote:
    """One of the two votes making up a double sign evidence."""

    type: int
    height: int
    round: int
    block_id: str
    validator_address: str
    validator_index: int
    signature: str


@dataclass(frozen=True)
class DoubleSignEvidence:
    """Evidence of a validator having signed two different blocks at one height."""

    height: int
    vote_a: DoubleSignVote
    vote_b: DoubleSignVote


# ---------------------------------------------------------------------------


class Database:
    """Validator storage backed by an SQLite database."""

    consensus_prefix = "cosmosvalcons"
    operator_prefix = "cosmosvaloper"

    def __init__(self, path: str | PathLike[str]) -> None:
        self.connection = sqlite3.connect(path)
        try:
            self.connection.executescript(_SCHEMA)
        except sqlite3.Error as err:
            self.connection.close()
            raise DatabaseError(f"error while creating the schema: {err}") from err

    def close(self) -> None:
        self.connection.close()

    def __enter__(self) -> Database:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    # -- helpers --

    def _query(self, sql: str, params: Sequence[Any] = ()) -> list[tuple]:
        try:
            return self.connection.execute(sql, params).fetchall()
        except sqlite3.Error as err:
            raise DatabaseError(str(err)) from err

    def _execute_many(
        self, action: str, sql: str, rows: Iterable[Sequence[Any]]
    ) -> None:
        try:
            with self.connection:
                self.connection.executemany(sql, rows)
        except sqlite3.Error as err:
            raise DatabaseError(f"error while {action}: {err}") from err

    # -- validators --

    def save_validator_data(self, validator: ValidatorData) -> None:
        """Store the information about a single validator."""
        self.save_validators_data([validator])

    def save_validators_data(self, validators: Sequence[ValidatorData]) -> None:
        """Store the information about many validators at once."""
        if not validators:
            return

        info_rows = [
            (
                v.consensus_address,
                v.operator_address,
                v.self_delegate_address,
                format_dec(v.parsed_max_change_rate()),
                format_dec(v.parsed_max_rate()),
                v.height,
            )
            for v in validators
        ]

        self._execute_many(
            "storing accounts",
            "INSERT INTO account (address) VALUES (?) ON CONFLICT DO NOTHING",
            [(v.self_delegate_address,) for v in validators],
        )
        self._execute_many(
            "storing validators",
            "INSERT INTO validator (consensus_address, consensus_pubkey) VALUES (?, ?) "
            "ON CONFLICT DO NOTHING",
            [(v.consensus_address, v.consensus_pubkey) for v in validators],
        )
        self._execute_many(
            "storing validator infos",
            """
INSERT INTO validator_info (consensus_address, operator_address, self_delegate_address,
                            max_change_rate, max_rate, height)
VALUES (?, ?, ?, ?, ?, ?)
ON CONFLICT (consensus_address) DO UPDATE
    SET operator_address = excluded.operator_address,
        self_delegate_address = excluded.self_delegate_address,
        max_change_rate = excluded.max_change_rate,
        max_rate = excluded.max_rate,
        height = excluded.height
WHERE validator_info.height <= excluded.height""",
            info_rows,
        )

    def get_validator_consensus_address(self, operator_address: str) -> str:
        """Return the consensus address of the validator with the given operator address."""
        rows = self._query(
            "SELECT consensus_address FROM validator_info WHERE operator_address = ?",
            (operator_address,),
        )
        if not rows:
            raise DatabaseError(
                "cannot find the consensus address of validator having operator "
                f"address {operator_address}"
            )
        return _validate_bech32_address(rows[0][0], self.consensus_prefix)

    def get_validator_operator_address(self, consensus_address: str) -> str:
        """Return the operator address of the validator with the given consensus address."""
        rows = self._query(
            "SELECT operator_address FROM validator_info WHERE consensus_address = ?",
            (consensus_address,),
        )
        if not rows:
            raise DatabaseError(
                "cannot find the operator address of validator having consensus "
                f"address {consensus_address}"
            )
        return _validate_bech32_address(rows[0][0], self.operator_prefix)

    def _get_validator_where(self, column: str, value: str) -> ValidatorData | None:
        rows = self._query(
            f"""
SELECT validator.consensus_address,
       validator.consensus_pubkey,
       validator_info.operator_address,
       validator_info.max_change_rate,
       validator_info.max_rate,
       validator_info.self_delegate_address
FROM validator INNER JOIN validator_info
    ON validator.consensus_address = validator_info.consensus_address
WHERE validator_info.{column} = ?""",
            (value,),
        )
        if not rows:
            return None
        cons, pubkey, operator, max_change_rate, max_rate, self_delegate = rows[0]
        return ValidatorData(
            consensus_address=cons,
            operator_address=operator,
            consensus_pubkey=pubkey,
            self_delegate_address=self_delegate,
            max_rate=max_rate,
            max_change_rate=max_change_rate,
        )

    def get_validator(self, operator_address: str) -> ValidatorData:
        """Return the validator having the given operator address."""
        validator = self._get_validator_where("operator_address", operator_address)
        if validator is None:
            raise DatabaseError(
                f"no validator with validator address {operator_address} could be found"
            )
        return validator

    def get_validators(self) -> list[ValidatorData]:
        """Return all the stored validators, ordered by consensus address."""
        rows = self._query(
            """
SELECT validator.consensus_address,
       validator.consensus_pubkey,
       validator_info.operator_address,
       validator_info.self_delegate_address,
       validator_info.max_rate,
       validator_info.max_change_rate,
       validator_info.height
FROM validator INNER JOIN validator_info
    ON validator.consensus_address = validator_info.consensus_address
GROUP BY validator.consensus_address
ORDER BY validator.consensus_address"""
        )
        return [
            ValidatorData(
                consensus_address=cons,
                operator_address=operator,
                consensus_pubkey=pubkey,
                self_delegate_address=self_delegate,
                max_rate=max_rate,
                max_change_rate=max_change_rate,
                height=height,
            )
            for cons, pubkey, operator, self_delegate, max_rate, max_change_rate, height in rows
        ]

    def get_validator_by_self_delegate_address(self, address: str) -> ValidatorData:
        """Return the validator having the given self delegate address."""
        validator = self._get_validator_where("self_delegate_address", address)
        if validator is None:
            raise DatabaseError(
                f"no validator with self delegate address {address} could be found"
            )
        return validator

    # -- descriptions --

    def save_validator_description(self, description: ValidatorDescription) -> None:
        """Store a validator description, merging it with the existing one."""
        cons_address = self.get_validator_consensus_address(description.operator_address)
        new = description.description.ensure_length()

        avatar_url = description.avatar_url
        existing = self._get_validator_description(cons_address)
        if existing is not None:
            new = existing.description.update(new)
            if description.avatar_url == DO_NOT_MODIFY:
                avatar_url = existing.avatar_url

        self._execute_many(
            "storing validator description",
            """
INSERT INTO validator_description (
    validator_address, moniker, identity, avatar_url, website, security_contact, details, height
)
VALUES (?, ?, ?, ?, ?, ?, ?, ?)
ON CONFLICT (validator_address) DO UPDATE
    SET moniker = excluded.moniker,
        identity = excluded.identity,
        avatar_url = excluded.avatar_url,
        website = excluded.website,
        security_contact = excluded.security_contact,
        details = excluded.details,
        height = excluded.height
WHERE validator_description.height <= excluded.height""",
            [
                (
                    to_null_string(cons_address),
                    to_null_string(new.moniker),
                    to_null_string(new.identity),
                    to_null_string(avatar_url),
                    to_null_string(new.website),
                    to_null_string(new.security_contact),
                    to_null_string(new.details),
                    description.height,
                )
            ],
        )

    def _get_validator_description(
        self, cons_address: str
    ) -> ValidatorDescription | None:
        try:
            rows = self._query(
                "SELECT validator_address, moniker, identity, avatar_url, website, "
                "security_contact, details, height FROM validator_description "
                "WHERE validator_address = ?",
                (cons_address,),
            )
        except DatabaseError:
            return None
        if not rows:
            return None
        address, moniker, identity, avatar, website, contact, details, height = rows[0]
        return ValidatorDescription(
            operator_address=address,
            description=Description(
                moniker=to_string(moniker),
                identity=to_string(identity),
                website=to_string(website),
                security_contact=to_string(contact),
                details=to_string(details),
            ),
            avatar_url=to_string(avatar),
            height=height,
        )

    # -- commissions --

    def save_validator_commission(self, commission: ValidatorCommission) -> None:
        """Store a validator commission, keeping the existing values that are not given."""
        if commission.commission is None and commission.min_self_delegation is None:
            return

        cons_address = self.get_validator_consensus_address(commission.validator_address)

        rate, min_self_delegation = "", ""
        existing = self._get_validator_commission(cons_address)
        if existing is not None:
            rate = to_string(existing[0])
            min_self_delegation = to_string(existing[1])

        if commission.commission is not None:
            rate = format_dec(commission.commission)
        if commission.min_self_delegation is not None:
            min_self_delegation = str(commission.min_self_delegation)

        self._execute_many(
            "storing validator commission",
            """
INSERT INTO validator_commission (validator_address, commission, min_self_delegation, height)
VALUES (?, ?, ?, ?)
ON CONFLICT (validator_address) DO UPDATE
    SET commission = excluded.commission,
        min_self_delegation = excluded.min_self_delegation,
        height = excluded.height
WHERE validator_commission.height <= excluded.height""",
            [(cons_address, rate, min_self_delegation, commission.height)],
        )

    def _get_validator_commission(
        self, cons_address: str
    ) -> tuple[str | None, str | None] | None:
        try:
            rows = self._query(
                "SELECT commission, min_self_delegation FROM validator_commission "
                "WHERE validator_address = ?",
                (cons_address,),
            )
        except DatabaseError:
            return None
        return rows[0] if rows else None

    # -- voting powers and statuses --

    def save_validators_voting_powers(
        self, entries: Sequence[ValidatorVotingPower]
    ) -> None:
        """Store the given voting powers, keeping newer ones already stored."""
        if not entries:
            return
        self._execute_many(
            "storing validators voting power",
            """
INSERT INTO validator_voting_power (validator_address, voting_power, height)
VALUES (?, ?, ?)
ON CONFLICT (validator_address) DO UPDATE
    SET voting_power = excluded.voting_power,
        height = excluded.height
WHERE validator_voting_power.height <= excluded.height""",
            [(e.consensus_address, e.voting_power, e.height) for e in entries],
        )

    def save_validators_statuses(self, statuses: Sequence[ValidatorStatus]) -> None:
        """Store the given validator statuses, keeping newer ones already stored."""
        if not statuses:
            return
        self._execute_many(
            "storing validators",
            "INSERT INTO validator (consensus_address, consensus_pubkey) VALUES (?, ?) "
            "ON CONFLICT DO NOTHING",
            [(s.consensus_address, s.consensus_pubkey) for s in statuses],
        )
        self._execute_many(
            "storing validators statuses",
            """
INSERT INTO validator_status (validator_address, status, jailed, tombstoned, height)
VALUES (?, ?, ?, ?, ?)
ON CONFLICT (validator_address) DO UPDATE
    SET status = excluded.status,
        jailed = excluded.jailed,
        tombstoned = excluded.tombstoned,
        height = excluded.height
WHERE validator_status.height <= excluded.height""",
            [
                (s.consensus_address, s.status, s.jailed, s.tombstoned, s.height)
                for s in statuses
            ],
        )

    # -- double sign evidences --

    def _save_double_sign_vote(self, vote: DoubleSignVote) -> int:
        try:
            with self.connection:
                cursor = self.connection.execute(
                    """
INSERT INTO double_sign_vote
    (type, height, round, block_id, validator_address, validator_index, signature)
VALUES (?, ?, ?, ?, ?, ?, ?) ON CONFLICT DO NOTHING""",
                    (
                        vote.type,
                        vote.height,
                        vote.round,
                        vote.block_id,
                        vote.validator_address,
                        vote.validator_index,
                        vote.signature,
                    ),
                )
        except sqlite3.Error as err:
            raise DatabaseError(f"error while storing double sign vote: {err}") from err
        if cursor.rowcount == 0:
            raise DatabaseError("error while storing double sign vote: no rows in result set")
        return cursor.lastrowid

    def save_double_sign_evidence(self, evidence: DoubleSignEvidence) -> None:
        """Store the two votes of the evidence and the evidence linking them."""
        vote_a = self._save_double_sign_vote(evidence.vote_a)
        vote_b = self._save_double_sign_vote(evidence.vote_b)
        self._execute_many(
            "storing double sign evidence",
            "INSERT INTO double_sign_evidence (height, vote_a_id, vote_b_id) "
            "VALUES (?, ?, ?) ON CONFLICT DO NOTHING",
            [(evidence.height, vote_a, vote_b)],
        )

    # -- modules --

    def insert_enable_modules(self, modules: Sequence[str]) -> None:
        """Replace the stored list of enabled modules with the given one."""
        if not modules:
            return
        try:
            with self.connection:
                self.connection.execute("DELETE FROM modules WHERE TRUE")
        except sqlite3.Error as err:
            raise DatabaseError(f"error while deleting modules: {err}") from err
        self._execute_many(
            "storing modules",
            "INSERT INTO modules (module_name) VALUES (?) ON CONFLICT DO NOTHING",
            [(module,) for module in modules],
        )


__all__ = [
    "DO_NOT_MODIFY",
    "Database",
    "DatabaseError",
    "Description",
    "DoubleSignEvidence",
    "DoubleSignVote",
    "ValidatorCommission",
    "ValidatorDescription",
    "ValidatorStatus",
    "ValidatorVotingPower",
    "replace",
]