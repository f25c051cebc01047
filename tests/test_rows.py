from datetime import datetime, timedelta, timezone

from bdindexer.dbtypes.coins import DbCoin, DbCoins, DbDecCoin, DbDecCoins
from bdindexer.dbtypes.rows import (
    AccountRow,
    AverageTimeRow,
    CommunityPoolRow,
    ConsensusRow,
    GenesisRow,
    InflationRow,
    MintParamsRow,
    ModuleRow,
    StakingPoolRow,
    SupplyRow,
    TokenPriceRow,
    TokenUnitRow,
    ValidatorSigningInfoRow,
    module_rows,
)


def test_module_rows_keep_order():
    modules = ["auth", "bank", "consensus", "distribution", "gov", "mint", "pricefeed", "staking", "supply"]
    rows = module_rows(modules)
    assert [row.module for row in rows] == modules
    assert rows == module_rows(modules)
    assert rows != module_rows(list(reversed(modules)))


def test_account_row_equality():
    assert AccountRow("cosmos1z4hfrxvlgl4s8u4n5ngjcw8kdqrcv43599amxs") == AccountRow(
        "cosmos1z4hfrxvlgl4s8u4n5ngjcw8kdqrcv43599amxs"
    )
    assert AccountRow("a") != AccountRow("b")


def test_module_row_equality():
    assert ModuleRow("auth") == ModuleRow("auth")
    assert ModuleRow("auth") != ModuleRow("bank")


def test_one_row_id_defaults_and_is_ignored():
    row = InflationRow(0.5, 10)
    assert row.one_row_id is True
    assert row == InflationRow(0.5, 10, one_row_id=False)
    assert row != InflationRow(0.5, 11)


def test_genesis_row_compares_instants():
    utc_time = datetime(2021, 1, 1, 12, tzinfo=timezone.utc)
    shifted = utc_time.astimezone(timezone(timedelta(hours=2)))
    assert GenesisRow("chain", utc_time, 1) == GenesisRow("chain", shifted, 1)
    assert GenesisRow("chain", utc_time, 1) != GenesisRow("other", utc_time, 1)


def test_consensus_and_average_rows():
    assert ConsensusRow(10, 1, "step") == ConsensusRow(10, 1, "step", one_row_id=False)
    assert ConsensusRow(10, 1, "step") != ConsensusRow(10, 2, "step")
    assert AverageTimeRow(5.0, 10) != AverageTimeRow(5.5, 10)


def test_supply_row_compares_coins():
    coins = DbCoins([DbCoin("uatom", "100")])
    assert SupplyRow(coins, 10) == SupplyRow(DbCoins([DbCoin("uatom", "100")]), 10)
    assert SupplyRow(coins, 10) != SupplyRow(DbCoins([DbCoin("uatom", "101")]), 10)


def test_community_pool_row_compares_coins():
    coins = DbDecCoins([DbDecCoin("uatom", "1.5")])
    assert CommunityPoolRow(coins, 10) == CommunityPoolRow(DbDecCoins(coins), 10)
    assert CommunityPoolRow(coins, 10) != CommunityPoolRow(coins, 11)


def test_staking_pool_and_mint_rows():
    assert StakingPoolRow(100, 50, 10) == StakingPoolRow(100, 50, 10)
    assert StakingPoolRow(100, 50, 10) != StakingPoolRow(100, 51, 10)
    assert MintParamsRow("{}", 1) != MintParamsRow("{}", 2)


def test_token_price_row_ignores_id():
    stamp = datetime(2020, 5, 5, tzinfo=timezone.utc)
    first = TokenPriceRow("atom", 1.5, 100, stamp, id="1")
    second = TokenPriceRow("atom", 1.5, 100, stamp, id="2")
    assert first == second
    assert first != TokenPriceRow("atom", 2.5, 100, stamp)


def test_token_unit_row_defaults():
    row = TokenUnitRow("atom", "uatom", 6)
    assert row.aliases == []
    assert row.price_id is None


def test_signing_info_row_equality():
    until = datetime(2020, 1, 1, tzinfo=timezone.utc)
    row = ValidatorSigningInfoRow("val", 1, 2, until, False, 3, 10)
    assert row == ValidatorSigningInfoRow("val", 1, 2, until, False, 3, 10)
    assert row != ValidatorSigningInfoRow("val", 1, 2, until, True, 3, 10)