from decimal import Decimal

import pytest

from bdindexer.dbtypes.coins import format_dec
from bdindexer.dbtypes.staking import (
    DoubleSignEvidenceRow,
    DoubleSignVoteRow,
    ValidatorCommissionRow,
    ValidatorData,
    ValidatorDescriptionRow,
    ValidatorInfoRow,
    ValidatorRow,
    ValidatorStatusRow,
    ValidatorVotingPowerRow,
)

CONS_ADDR = "cosmosvalcons1qqqqrezrl53hujmpdch6d805ac75n220ku09rl"
OPER_ADDR = "cosmosvaloper1rcp29q3hpd246n6qak7jluqep4v006cdsc2kkl"
CONS_PUBKEY = "cosmosvalconspub1zcjduepq7mft6gfls57a0a42d7uhx656cckhfvtrlmw744jv4q0mvlv0dypskehfk8"
SELF_DELEGATE = "cosmos1z4hfrxvlgl4s8u4n5ngjcw8kdqrcv43599amxs"


def _validator(max_rate="1", max_change_rate="2", height=1):
    return ValidatorData(
        CONS_ADDR, OPER_ADDR, CONS_PUBKEY, SELF_DELEGATE, max_rate, max_change_rate, height
    )


def test_validator_data_fields_keep_constructor_order():
    validator = _validator()
    assert validator.consensus_address == CONS_ADDR
    assert validator.operator_address == OPER_ADDR
    assert validator.consensus_pubkey == CONS_PUBKEY
    assert validator.self_delegate_address == SELF_DELEGATE
    assert validator.height == 1


def test_parsed_rates_are_integer_decimals():
    validator = _validator("1", "2")
    assert validator.parsed_max_rate() == Decimal(1)
    assert validator.parsed_max_change_rate() == Decimal(2)


def test_parsed_rate_formats_with_chain_precision():
    assert format_dec(_validator("1", "2").parsed_max_rate()) == "1.000000000000000000"


@pytest.mark.parametrize("value", ["0.5", "", "abc", "1_000", " 1"])
def test_parsed_rate_rejects_non_integers(value):
    with pytest.raises(ValueError):
        _validator(max_rate=value).parsed_max_rate()
    with pytest.raises(ValueError):
        _validator(max_change_rate=value).parsed_max_change_rate()


def test_parsed_rate_rejects_out_of_range():
    with pytest.raises(ValueError):
        _validator(max_rate=str(2**63)).parsed_max_rate()


def test_validator_data_equality():
    assert _validator() == _validator()
    assert _validator(height=1) != _validator(height=2)


def test_validator_row_equality():
    assert ValidatorRow(CONS_ADDR, CONS_PUBKEY) == ValidatorRow(CONS_ADDR, CONS_PUBKEY)
    assert ValidatorRow(CONS_ADDR, CONS_PUBKEY) != ValidatorRow(CONS_ADDR, "other")


def test_validator_info_row_equality_covers_every_field():
    base = ValidatorInfoRow(CONS_ADDR, OPER_ADDR, SELF_DELEGATE, "1", "2", 10)
    assert base == ValidatorInfoRow(CONS_ADDR, OPER_ADDR, SELF_DELEGATE, "1", "2", 10)
    assert base != ValidatorInfoRow(CONS_ADDR, OPER_ADDR, SELF_DELEGATE, "10", "2", 10)
    assert base != ValidatorInfoRow(CONS_ADDR, OPER_ADDR, SELF_DELEGATE, "1", "5", 10)
    assert base != ValidatorInfoRow(CONS_ADDR, OPER_ADDR, SELF_DELEGATE, "1", "2", 11)


def test_description_row_build_turns_blank_into_null():
    row = ValidatorDescriptionRow.build(
        CONS_ADDR, "moniker", "identity", "avatar-url", "", "securityContact", "  ", 10
    )
    assert row.moniker == "moniker"
    assert row.website is None
    assert row.details is None
    assert row.avatar_url == "avatar-url"


def test_description_row_build_trims_values():
    row = ValidatorDescriptionRow.build(CONS_ADDR, "  moniker ", "", "", "", "", "", 1)
    assert row.moniker == "moniker"


def test_description_row_equality_ignores_avatar_url():
    a = ValidatorDescriptionRow.build(CONS_ADDR, "moniker", "", "avatar-url", "", "", "", 10)
    b = ValidatorDescriptionRow.build(CONS_ADDR, "moniker", "", "new-avatar-url", "", "", "", 10)
    assert a == b
    c = ValidatorDescriptionRow.build(CONS_ADDR, "moniker", "identity", "avatar-url", "", "", "", 10)
    assert a != c


def test_commission_row_build_and_equality():
    row = ValidatorCommissionRow.build(CONS_ADDR, "0.011000000000000000", "12", 10)
    assert row.commission == "0.011000000000000000"
    assert row.min_self_delegation == "12"
    assert row == ValidatorCommissionRow.build(CONS_ADDR, "0.011000000000000000", "12", 10)
    assert row != ValidatorCommissionRow.build(CONS_ADDR, "0.050000000000000000", "12", 10)


def test_commission_row_build_blank_is_null():
    row = ValidatorCommissionRow.build(CONS_ADDR, "", " ", 10)
    assert row.commission is None
    assert row.min_self_delegation is None


def test_voting_power_row_equality():
    assert ValidatorVotingPowerRow(CONS_ADDR, 1000, 10) == ValidatorVotingPowerRow(CONS_ADDR, 1000, 10)
    assert ValidatorVotingPowerRow(CONS_ADDR, 1000, 10) != ValidatorVotingPowerRow(CONS_ADDR, 10, 11)


def test_status_row_equality():
    row = ValidatorStatusRow(1, False, False, CONS_ADDR, 10)
    assert row == ValidatorStatusRow(1, False, False, CONS_ADDR, 10)
    assert row != ValidatorStatusRow(3, True, True, CONS_ADDR, 10)


def test_double_sign_rows():
    vote = DoubleSignVoteRow(
        1,
        1,
        10,
        1,
        "A42C9492F5DE01BFA6117137102C3EF909F1A46C2F56915F542D12AC2D0A5BCA",
        CONS_ADDR,
        1,
        "1qwPQjPrc7DH7+f6YAE3fOkq6phDAJ60dEyhmcZ7dx2ZgGvi9DbVLsn4leYqRNA/63ZeeH5kVly8zI1jCh4iBg==",
    )
    other = DoubleSignVoteRow(
        2,
        1,
        10,
        1,
        "418A20D12F45FC9340BE0CD2EDB0FFA1E4316176B8CE11E123EF6CBED23C8423",
        CONS_ADDR,
        1,
        "A5m7SVuvZ8YNXcUfBKLgkeV+Vy5ea+7rPfzlbkEvHOPPce6B7A2CwOIbCmPSVMKUarUdta+HiyTV+IELaOYyDA==",
    )
    assert vote != other
    evidence = DoubleSignEvidenceRow(10, vote.id, other.id)
    assert evidence == DoubleSignEvidenceRow(10, 1, 2)
    assert evidence != DoubleSignEvidenceRow(10, 2, 1)