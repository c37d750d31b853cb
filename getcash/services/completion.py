"""
Task completion bookkeeping.

A (user, task) pair can be completed once. The first completion credits the
tier reward to the personal wallet and lifetime earnings in the same
transaction as the completion record; repeats report "already completed"
and leave the wallet alone.

Payment is tracked separately in ``task_rewards``. Removing a completion
record (by the user or by cleanup) does not make the pair payable again:
completing it once more only restores the record.
"""
from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .. import models
from ..core.exceptions import NotFoundError, PersistenceError
from ..core.logger import logger
from .rules import check_daily_quota, tasks_done_today
from .tariff import get_tariff
from .wallet import get_or_create_wallet


@dataclass
class CompletionResult:
    already_completed: bool
    reward: int = 0
    new_balance: float = 0.0
    job_level: Optional[str] = None

    def to_dict(self) -> dict:
        if self.already_completed:
            return {"message": "already completed", "alreadyCompleted": True}
        return {
            "message": "Task completed successfully",
            "earnings": self.reward,
            "newBalance": self.new_balance,
            "jobLevel": self.job_level,
        }


def complete_task(db: Session, user_id: int, task_id: int, today: Optional[str] = None) -> CompletionResult:
    user = db.query(models.User).filter(models.User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    task = db.query(models.Task).filter(models.Task.id == task_id).first()
    if not task:
        raise NotFoundError("Task not found")

    exists = db.query(models.CompletedTask).filter(
        models.CompletedTask.user_id == user_id,
        models.CompletedTask.task_id == task_id,
    ).first()
    if exists:
        return CompletionResult(already_completed=True)

    rewarded = db.query(models.TaskReward).filter(
        models.TaskReward.user_id == user_id,
        models.TaskReward.task_id == task_id,
    ).first()
    if rewarded:
        _restore_completion(db, user_id, task_id)
        return CompletionResult(already_completed=True)

    wallet = get_or_create_wallet(db, user_id)
    tariff = get_tariff(wallet.job_level)
    today = today or date.today().isoformat()
    done_today = tasks_done_today(wallet.tasks_completed_today, wallet.last_task_date, today)
    check_daily_quota(tariff, done_today)

    reward = tariff.per_task_reward
    try:
        db.add(models.CompletedTask(user_id=user_id, task_id=task_id))
        db.add(models.TaskReward(user_id=user_id, task_id=task_id, amount=reward))
        db.flush()
    except IntegrityError:
        # concurrent insert of the same pair won
        db.rollback()
        return CompletionResult(already_completed=True)

    try:
        db.query(models.Wallet).filter(models.Wallet.user_id == user_id).update({
            models.Wallet.personal_wallet: models.Wallet.personal_wallet + reward,
            models.Wallet.total_earnings: models.Wallet.total_earnings + reward,
            models.Wallet.tasks_completed_today: done_today + 1,
            models.Wallet.last_task_date: today,
        }, synchronize_session=False)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Complete task {task_id} failed for user {user_id}: {e}")
        raise PersistenceError("Failed to mark task as completed")

    db.refresh(wallet)
    logger.info(f"User {user_id} completed task {task_id}, +{reward} ({tariff.name})")
    return CompletionResult(
        already_completed=False,
        reward=reward,
        new_balance=wallet.personal_wallet,
        job_level=tariff.name,
    )


def _restore_completion(db: Session, user_id: int, task_id: int) -> None:
    try:
        db.add(models.CompletedTask(user_id=user_id, task_id=task_id))
        db.commit()
    except IntegrityError:
        db.rollback()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Restore completion of task {task_id} failed for user {user_id}: {e}")
        raise PersistenceError("Failed to mark task as completed")
    logger.info(f"User {user_id} re-completed already paid task {task_id}, no credit")


def list_completed(db: Session, user_id: int) -> List[int]:
    rows = db.query(models.CompletedTask.task_id).filter(models.CompletedTask.user_id == user_id).all()
    return [r.task_id for r in rows]


def remove_completion(db: Session, user_id: int, task_id: int) -> bool:
    """Delete the completion record. The credited reward stays in the wallet
    and the pair stays paid."""
    try:
        removed = db.query(models.CompletedTask).filter(
            models.CompletedTask.user_id == user_id,
            models.CompletedTask.task_id == task_id,
        ).delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Remove completion of task {task_id} failed for user {user_id}: {e}")
        raise PersistenceError("Failed to remove completed task")
    return removed > 0
