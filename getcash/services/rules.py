"""
Pure wallet rules shared by the server services and the client local store.

Nothing here touches the database, so both backends reject the same requests
with the same messages.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from ..core.config import settings
from ..core.exceptions import ValidationError
from .tariff import JobLevelTariff, get_tariff


def round_half_up(value) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_ugx(value) -> str:
    return f"UGX {value:,.0f}"


def compute_fee(amount) -> int:
    """Withdrawal fee, rounded to the nearest whole UGX (half-up)."""
    return round_half_up(Decimal(str(amount)) * Decimal(settings.WITHDRAWAL_FEE_RATE))


def validate_withdrawal(amount, phone: Optional[str], recipient_name: Optional[str],
                        network: Optional[str], available) -> None:
    """Raise ValidationError for the first failing check, in this order:
    minimum amount, required payout fields, sufficient balance."""
    if amount is None or amount < settings.MIN_WITHDRAWAL:
        message = f"Minimum withdrawal amount is {format_ugx(settings.MIN_WITHDRAWAL)}"
        if amount is not None and amount > available:
            message += f". Insufficient balance. Available: {format_ugx(available)}"
        raise ValidationError(message)
    if not all(v and str(v).strip() for v in (phone, recipient_name, network)):
        raise ValidationError("Phone number, recipient name and network are required")
    if amount > available:
        raise ValidationError(
            f"Insufficient balance. Available: {format_ugx(available)}",
            {"available": available},
        )


def validate_upgrade(target_level: Optional[str], investment_amount) -> JobLevelTariff:
    if not target_level:
        raise ValidationError("Invalid job level")
    tariff = get_tariff(target_level)
    if investment_amount is None or investment_amount < tariff.required_investment:
        raise ValidationError(
            f"Minimum investment for {tariff.name} level is {format_ugx(tariff.required_investment)}",
            {"requiredInvestment": tariff.required_investment},
        )
    return tariff


def tasks_done_today(tasks_completed_today: Optional[int], last_task_date: Optional[str], today: str) -> int:
    # counter only counts for the day it was written
    if last_task_date != today:
        return 0
    return tasks_completed_today or 0


def check_daily_quota(tariff: JobLevelTariff, done_today: int) -> None:
    if done_today >= tariff.daily_task_quota:
        raise ValidationError(
            f"Daily task limit reached for {tariff.name} level ({tariff.daily_task_quota} tasks)"
        )
