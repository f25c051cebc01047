"""Coin values and their representation inside the database."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Context, Decimal, InvalidOperation
from typing import Iterable

DEC_PRECISION = 18
_DEC_QUANTUM = Decimal(1).scaleb(-DEC_PRECISION)
_DEC_CONTEXT = Context(prec=100)


def format_dec(value: Decimal | int | str) -> str:
    """Render a decimal amount with the fixed 18-digit precision used on chain."""
    dec = value if isinstance(value, Decimal) else Decimal(value)
    return format(dec.quantize(_DEC_QUANTUM, context=_DEC_CONTEXT), "f")


def to_string(value: str | None) -> str:
    """Return the stored string, or an empty string for a NULL value."""
    return value if value is not None else ""


def to_null_string(value: str) -> str | None:
    """Trim the value and turn an empty result into NULL."""
    value = value.strip()
    return value or None


def remove_empty(values: Iterable[str]) -> list[str]:
    """Return the given strings without the empty ones."""
    return [value for value in values if value != ""]


def _text(src: bytes | str) -> str:
    return src.decode() if isinstance(src, (bytes, bytearray)) else src


def _strip_markup(text: str, *, split_pairs: bool) -> str:
    for char in ('"', "{", "}"):
        text = text.replace(char, "")
    if split_pairs:
        text = text.replace("),(", ") (")
    return text.replace("(", "").replace(")", "")


def _split_pair(value: str) -> tuple[str, str]:
    parts = value.split(",")
    if len(parts) < 2:
        raise ValueError(f"malformed coin value: {value!r}")
    return parts[0], parts[1]


@dataclass(frozen=True)
class Coin:
    """An integer amount of a given denomination."""

    denom: str
    amount: int

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError(f"negative coin amount: {self.amount}")


@dataclass(frozen=True)
class DecCoin:
    """A decimal amount of a given denomination."""

    denom: str
    amount: Decimal

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError(f"negative coin amount: {self.amount}")


@dataclass(frozen=True)
class DbCoin:
    """A single coin as stored inside the database."""

    denom: str
    amount: str

    @classmethod
    def from_coin(cls, coin: Coin) -> DbCoin:
        return cls(denom=coin.denom, amount=str(coin.amount))

    def to_db_value(self) -> str:
        return f"({self.denom},{self.amount})"

    @classmethod
    def parse(cls, src: bytes | str) -> DbCoin:
        denom, amount = _split_pair(_strip_markup(_text(src), split_pairs=False))
        return cls(denom=denom, amount=amount)

    def to_coin(self) -> Coin:
        try:
            amount = int(self.amount)
        except ValueError:
            raise ValueError(f"invalid coin amount: {self.amount!r}") from None
        return Coin(self.denom, amount)


class DbCoins(list):
    """An ordered list of DbCoin values."""

    @classmethod
    def from_coins(cls, coins: Iterable[Coin]) -> DbCoins:
        return cls(DbCoin.from_coin(coin) for coin in coins)

    @classmethod
    def parse(cls, src: bytes | str) -> DbCoins:
        text = _strip_markup(_text(src), split_pairs=True)
        return cls(
            DbCoin(*_split_pair(value)) for value in remove_empty(text.split(" "))
        )

    def to_coins(self) -> list[Coin]:
        return [coin.to_coin() for coin in self]


@dataclass(frozen=True)
class DbDecCoin:
    """A single decimal coin as stored inside the database."""

    denom: str
    amount: str

    @classmethod
    def from_dec_coin(cls, coin: DecCoin) -> DbDecCoin:
        return cls(denom=coin.denom, amount=format_dec(coin.amount))

    def to_db_value(self) -> str:
        return f"({self.denom},{self.amount})"

    @classmethod
    def parse(cls, src: bytes | str) -> DbDecCoin:
        denom, amount = _split_pair(_strip_markup(_text(src), split_pairs=False))
        return cls(denom=denom, amount=amount)

    def to_dec_coin(self) -> DecCoin:
        try:
            amount = Decimal(self.amount)
        except InvalidOperation:
            raise ValueError(f"invalid decimal amount: {self.amount!r}") from None
        if not amount.is_finite():
            raise ValueError(f"invalid decimal amount: {self.amount!r}")
        return DecCoin(self.denom, amount)


class DbDecCoins(list):
    """An ordered list of DbDecCoin values."""

    @classmethod
    def from_dec_coins(cls, coins: Iterable[DecCoin]) -> DbDecCoins:
        return cls(DbDecCoin.from_dec_coin(coin) for coin in coins)

    @classmethod
    def parse(cls, src: bytes | str) -> DbDecCoins:
        text = _strip_markup(_text(src), split_pairs=True)
        return cls(
            DbDecCoin(*_split_pair(value)) for value in remove_empty(text.split(" "))
        )

    def to_dec_coins(self) -> list[DecCoin]:
        return [coin.to_dec_coin() for coin in self]