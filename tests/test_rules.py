# tests/test_rules.py

from __future__ import annotations

import pytest

from getcash.core.exceptions import ValidationError
from getcash.services.rules import (
    check_daily_quota,
    compute_fee,
    format_ugx,
    round_half_up,
    tasks_done_today,
    validate_upgrade,
    validate_withdrawal,
)
from getcash.services.tariff import DEFAULT_JOB_LEVEL, JOB_LEVELS, get_tariff, tariff_table


def test_tariff_table_has_five_tiers_in_order() -> None:
    assert list(JOB_LEVELS) == ["trainee", "junior", "senior", "expert", "master"]
    assert tariff_table()["senior"] == {"perTaskReward": 1000, "dailyTaskQuota": 15, "requiredInvestment": 250000}
    assert get_tariff(None).name == DEFAULT_JOB_LEVEL == "trainee"
    assert get_tariff("trainee").per_task_reward == 500


def test_unknown_level_is_rejected() -> None:
    with pytest.raises(ValidationError, match="Invalid job level"):
        get_tariff("ceo")


@pytest.mark.parametrize("amount, fee", [(10000, 200), (10025, 201), (10075, 202), (12345, 247), (50000.0, 1000)])
def test_fee_is_two_percent_rounded_half_up(amount, fee) -> None:
    assert compute_fee(amount) == fee


def test_final_amount_for_minimum_withdrawal() -> None:
    fee = compute_fee(10000)
    assert (fee, 10000 - fee) == (200, 9800)


def test_round_and_format_helpers() -> None:
    assert round_half_up(0.5) == 1
    assert round_half_up(2.5) == 3
    assert format_ugx(3000) == "UGX 3,000"
    assert format_ugx(250000) == "UGX 250,000"


def test_withdrawal_below_minimum_rejected_regardless_of_balance() -> None:
    with pytest.raises(ValidationError) as exc:
        validate_withdrawal(5000, "0700", "Alice", "MTN", available=1_000_000)
    assert exc.value.message == "Minimum withdrawal amount is UGX 10,000"


def test_withdrawal_below_minimum_and_above_balance_mentions_both() -> None:
    with pytest.raises(ValidationError) as exc:
        validate_withdrawal(5000, "0700", "Alice", "MTN", available=3000)
    assert exc.value.message.startswith("Minimum withdrawal amount is UGX 10,000")
    assert "Insufficient balance. Available: UGX 3,000" in exc.value.message


def test_withdrawal_missing_amount() -> None:
    with pytest.raises(ValidationError, match="Minimum withdrawal amount"):
        validate_withdrawal(None, "0700", "Alice", "MTN", available=50000)


@pytest.mark.parametrize("phone, name, network", [(None, "Alice", "MTN"), ("0700", "  ", "MTN"), ("0700", "Alice", "")])
def test_withdrawal_requires_payout_fields(phone, name, network) -> None:
    with pytest.raises(ValidationError, match="required"):
        validate_withdrawal(10000, phone, name, network, available=50000)


def test_withdrawal_above_balance() -> None:
    with pytest.raises(ValidationError) as exc:
        validate_withdrawal(15000, "0700", "Alice", "MTN", available=3000)
    assert exc.value.message == "Insufficient balance. Available: UGX 3,000"
    assert exc.value.details == {"available": 3000}


def test_withdrawal_of_whole_balance_is_allowed() -> None:
    validate_withdrawal(10000, "0700", "Alice", "Airtel", available=10000)


def test_upgrade_requires_tier_investment() -> None:
    with pytest.raises(ValidationError) as exc:
        validate_upgrade("senior", 200000)
    assert "UGX 250,000" in exc.value.message
    assert exc.value.details["requiredInvestment"] == 250000

    assert validate_upgrade("senior", 250000).per_task_reward == 1000


def test_daily_counter_resets_on_new_day() -> None:
    assert tasks_done_today(4, "2026-01-01", "2026-01-01") == 4
    assert tasks_done_today(4, "2026-01-01", "2026-01-02") == 0
    assert tasks_done_today(None, None, "2026-01-02") == 0


def test_daily_quota() -> None:
    trainee = get_tariff("trainee")
    check_daily_quota(trainee, trainee.daily_task_quota - 1)
    with pytest.raises(ValidationError, match="Daily task limit reached"):
        check_daily_quota(trainee, trainee.daily_task_quota)
