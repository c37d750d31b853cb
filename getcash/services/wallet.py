from datetime import date
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import models
from ..core.exceptions import NotFoundError, PersistenceError, ValidationError
from ..core.logger import logger
from .rules import format_ugx, tasks_done_today, validate_upgrade
from .tariff import DEFAULT_JOB_LEVEL, get_tariff


def get_or_create_wallet(db: Session, user_id: int) -> models.Wallet:
    """Wallet row for ``user_id``; created with zero balances on first access."""
    wallet = db.query(models.Wallet).filter(models.Wallet.user_id == user_id).first()
    if wallet:
        return wallet

    wallet = models.Wallet(
        user_id=user_id,
        income_wallet=0.0,
        personal_wallet=0.0,
        total_earnings=0.0,
        total_withdrawals=0.0,
        job_level=DEFAULT_JOB_LEVEL,
        tasks_completed_today=0,
    )
    try:
        db.add(wallet)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Create wallet failed for user {user_id}: {e}")
        raise PersistenceError("Failed to load wallet")
    return wallet


def wallet_state(wallet: models.Wallet, today: Optional[str] = None) -> dict:
    today = today or date.today().isoformat()
    tariff = get_tariff(wallet.job_level)
    return {
        "userId": wallet.user_id,
        "incomeWallet": wallet.income_wallet,
        "personalWallet": wallet.personal_wallet,
        "totalEarnings": wallet.total_earnings,
        "totalWithdrawals": wallet.total_withdrawals,
        "jobLevel": tariff.name,
        "perTaskEarning": tariff.per_task_reward,
        "dailyTaskQuota": tariff.daily_task_quota,
        "tasksCompletedToday": tasks_done_today(wallet.tasks_completed_today, wallet.last_task_date, today),
        "lastTaskDate": wallet.last_task_date,
    }


def _require_user(db: Session, user_id: int) -> models.User:
    user = db.query(models.User).filter(models.User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user


def debit_personal(db: Session, user_id: int, amount) -> bool:
    """Conditionally debit the personal wallet. Nothing is committed.

    The UPDATE only matches while the balance covers ``amount``, so a stale
    read elsewhere can never push the wallet below zero.
    """
    matched = db.query(models.Wallet).filter(
        models.Wallet.user_id == user_id,
        models.Wallet.personal_wallet >= amount,
    ).update({
        models.Wallet.personal_wallet: models.Wallet.personal_wallet - amount,
        models.Wallet.total_withdrawals: models.Wallet.total_withdrawals + amount,
    }, synchronize_session=False)
    return matched == 1


def upgrade_job_level(db: Session, user_id: int, target_level: Optional[str], investment_amount) -> dict:
    # investment is checked but not deducted from any wallet
    tariff = validate_upgrade(target_level, investment_amount)
    _require_user(db, user_id)
    wallet = get_or_create_wallet(db, user_id)

    try:
        wallet.job_level = tariff.name
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Upgrade job level failed for user {user_id}: {e}")
        raise PersistenceError("Failed to upgrade job level")

    logger.info(f"User {user_id} upgraded to {tariff.name} (investment {investment_amount})")
    return {"jobLevel": tariff.name, "perTaskEarning": tariff.per_task_reward}


def adjust_wallet(db: Session, operator_id: int, user_id: int, amount: float, reason: str) -> models.Wallet:
    """Admin credit (positive) or debit (negative) of the personal wallet, audited."""
    _require_user(db, user_id)
    wallet = get_or_create_wallet(db, user_id)

    matched = db.query(models.Wallet).filter(
        models.Wallet.user_id == user_id,
        models.Wallet.personal_wallet + amount >= 0,
    ).update({
        models.Wallet.personal_wallet: models.Wallet.personal_wallet + amount,
    }, synchronize_session=False)
    if matched != 1:
        db.rollback()
        raise ValidationError(f"Adjustment exceeds balance. Available: {format_ugx(wallet.personal_wallet)}")

    db.add(models.AuditLog(operator_id=operator_id, action="admin_adjust", target_id=user_id,
                           detail=f"Adjust: {amount}, {reason}"))
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Wallet adjust failed for user {user_id}: {e}")
        raise PersistenceError("Failed to adjust wallet")

    logger.info(f"Admin {operator_id} adjusted wallet of user {user_id} by {amount}: {reason}")
    return wallet
