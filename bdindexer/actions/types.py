"""Payloads, execution context and responses of the actions server."""

from __future__ import annotations

import base64
import dataclasses
import json
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable, Iterable, Mapping, Protocol

from bdindexer.dbtypes.coins import Coin, DecCoin, format_dec

if TYPE_CHECKING:
    from bdindexer.actions.sources import Sources

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_UINT64_MAX = 2**64 - 1

# Fields carrying this metadata are written to JSON as strings.
_AS_STRING = {"json_string": True}


def _get_str(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"invalid payload: {key} must be a string")
    return value


def _get_int(data: Mapping[str, Any], key: str, minimum: int, maximum: int) -> int:
    value = data.get(key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"invalid payload: {key} must be an integer")
    if not minimum <= value <= maximum:
        raise ValueError(f"invalid payload: {key} out of range: {value}")
    return value


def _get_bool(data: Mapping[str, Any], key: str) -> bool:
    value = data.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ValueError(f"invalid payload: {key} must be a boolean")
    return value


@dataclass
class PayloadArgs:
    """The input arguments of an action."""

    address: str = ""
    height: int = 0
    offset: int = 0
    limit: int = 0
    count_total: bool = False


@dataclass
class PageRequest:
    """Pagination options of a chain query."""

    offset: int = 0
    limit: int = 0
    count_total: bool = False


@dataclass
class Payload:
    """The data sent along with an action request."""

    session_variables: dict[str, Any] = field(default_factory=dict)
    input: PayloadArgs = field(default_factory=PayloadArgs)

    @classmethod
    def from_json(cls, data: bytes | str) -> Payload:
        """Decode a JSON request body, raising ValueError if it is not a valid payload."""
        try:
            decoded = json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError) as err:
            raise ValueError(f"invalid payload: {err}") from err
        if decoded is None:
            return cls()
        if not isinstance(decoded, dict):
            raise ValueError("invalid payload: expected a JSON object")

        session = decoded.get("session_variables")
        if session is None:
            session = {}
        elif not isinstance(session, dict):
            raise ValueError("invalid payload: session_variables must be an object")

        raw_input = decoded.get("input")
        if raw_input is None:
            args = PayloadArgs()
        elif not isinstance(raw_input, dict):
            raise ValueError("invalid payload: input must be an object")
        else:
            args = PayloadArgs(
                address=_get_str(raw_input, "address"),
                height=_get_int(raw_input, "height", _INT64_MIN, _INT64_MAX),
                offset=_get_int(raw_input, "offset", 0, _UINT64_MAX),
                limit=_get_int(raw_input, "limit", 0, _UINT64_MAX),
                count_total=_get_bool(raw_input, "count_total"),
            )
        return cls(session_variables=session, input=args)

    def pagination(self) -> PageRequest:
        """Return the pagination requested by this payload."""
        return PageRequest(
            offset=self.input.offset,
            limit=self.input.limit,
            count_total=self.input.count_total,
        )


class _Node(Protocol):
    def latest_height(self) -> int: ...


@dataclass
class Context:
    """What an action handler needs to run: the chain node and the data sources."""

    node: _Node
    sources: Sources | None = None

    def resolve_height(self, payload: Payload | None = None) -> int:
        """Return the height asked for, or the latest chain height when none is given."""
        if payload is None or payload.input.height == 0:
            try:
                return self.node.latest_height()
            except Exception as err:
                raise RuntimeError(
                    f"error while getting chain latest block height: {err}"
                ) from err
        return payload.input.height


ActionHandler = Callable[[Context, Payload], Any]


# ---------------------------------------------------------------------------


@dataclass
class CoinAmount:
    """A coin as returned to the caller of an action."""

    amount: str
    denom: str


def convert_coins(coins: Iterable[Coin]) -> list[CoinAmount]:
    """Convert integer coins into response coins."""
    return [CoinAmount(amount=str(coin.amount), denom=coin.denom) for coin in coins]


def convert_dec_coins(coins: Iterable[DecCoin]) -> list[CoinAmount]:
    """Convert decimal coins into response coins."""
    return [CoinAmount(amount=format_dec(coin.amount), denom=coin.denom) for coin in coins]


@dataclass
class Address:
    address: str


@dataclass
class Balance:
    coins: list[CoinAmount]


@dataclass
class Delegation:
    delegator_address: str
    validator_address: str
    coins: list[CoinAmount]


@dataclass
class DelegationResponse:
    delegations: list[Delegation]
    pagination: Mapping[str, Any] | None = None


@dataclass
class DelegationReward:
    coins: list[CoinAmount]
    validator_address: str


@dataclass
class ValidatorCommissionAmount:
    coins: list[CoinAmount]


@dataclass
class UnbondingDelegation:
    delegator_address: str
    validator_address: str
    entries: list[Any]


@dataclass
class UnbondingDelegationResponse:
    unbonding_delegations: list[UnbondingDelegation]
    pagination: Mapping[str, Any] | None = None


@dataclass
class RedelegationEntry:
    completion_time: datetime
    balance: int = field(metadata=_AS_STRING)


@dataclass
class Redelegation:
    delegator_address: str
    validator_src_address: str
    validator_dst_address: str
    entries: list[RedelegationEntry] = field(default_factory=list)


@dataclass
class RedelegationResponse:
    redelegations: list[Redelegation]
    pagination: Mapping[str, Any] | None = None


@dataclass
class GraphQLError:
    message: str


# ---------------------------------------------------------------------------


def _format_time(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    text = value.strftime("%Y-%m-%dT%H:%M:%S")
    if value.microsecond:
        text += "." + f"{value.microsecond:06d}".rstrip("0")
    offset = value.utcoffset() or timedelta(0)
    if offset == timedelta(0):
        return text + "Z"
    sign = "+" if offset > timedelta(0) else "-"
    minutes = abs(int(offset.total_seconds())) // 60
    return f"{text}{sign}{minutes // 60:02d}:{minutes % 60:02d}"


def to_json_value(value: Any) -> Any:
    """Turn a response into plain values that the json module can encode.

    Raises TypeError for values that have no JSON form.
    """
    if value is None or isinstance(value, (bool, str, int)):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise TypeError(f"unsupported float value: {value}")
        return value
    if isinstance(value, Decimal):
        return format_dec(value)
    if isinstance(value, datetime):
        return _format_time(value)
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        result = {}
        for item in dataclasses.fields(value):
            attr = getattr(value, item.name)
            result[item.name] = (
                str(attr) if item.metadata.get("json_string") else to_json_value(attr)
            )
        return result
    if isinstance(value, Mapping):
        return {str(key): to_json_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json_value(item) for item in value]
    raise TypeError(f"cannot encode value of type {type(value).__name__} as JSON")