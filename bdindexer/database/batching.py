"""Splitting of account lists into batches fitting a single SQL statement."""

from __future__ import annotations

from typing import Sequence, TypeVar

MAX_POSTGRESQL_PARAMS = 65535

T = TypeVar("T")


def split_accounts(accounts: Sequence[T], params_number: int) -> list[list[T]]:
    """Split accounts into batches whose parameters fit in one statement.

    Each account uses params_number statement parameters. The first batch holds
    one account more than the following ones, and trailing batches may be empty.
    """
    if params_number <= 0:
        raise ValueError(f"invalid number of parameters per account: {params_number}")
    max_per_slice = MAX_POSTGRESQL_PARAMS // params_number
    if max_per_slice < 2:
        raise ValueError(
            f"too many parameters per account: {params_number} "
            f"(at most {MAX_POSTGRESQL_PARAMS // 2})"
        )

    slices: list[list[T]] = [[] for _ in range(len(accounts) // max_per_slice + 1)]
    slice_index = 0
    for index, account in enumerate(accounts):
        if slice_index == len(slices):
            slices.append([])
        slices[slice_index].append(account)
        if index > 0 and index % (max_per_slice - 1) == 0:
            slice_index += 1
    return slices