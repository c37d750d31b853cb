import os
from datetime import datetime, timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import models
from ..core.config import settings
from ..core.exceptions import PersistenceError
from ..core.logger import logger


def database_size() -> dict:
    size = 0
    if settings.DATABASE_URL.startswith("sqlite:///"):
        path = settings.DATABASE_URL[len("sqlite:///"):]
        if os.path.exists(path):
            size = os.path.getsize(path)
    return {"bytes": size, "kb": f"{size / 1024:.2f}", "mb": f"{size / (1024 * 1024):.2f}"}


def collect_stats(db: Session) -> dict:
    return {
        "users": db.query(models.User).count(),
        "tasks": db.query(models.Task).count(),
        "completedTasks": db.query(models.CompletedTask).count(),
        "withdrawals": db.query(models.Withdrawal).count(),
        "size": database_size(),
    }


def export_all(db: Session) -> dict:
    """Backup snapshot of every table; passwords are left out."""
    users = [
        {"id": u.id, "username": u.username, "phone": u.phone, "isAdmin": bool(u.is_admin),
         "createdAt": u.created_at.isoformat() if u.created_at else None}
        for u in db.query(models.User).all()
    ]
    tasks = [
        {"id": t.id, "title": t.title, "price": t.price, "category": t.category,
         "status": t.status, "uploadDate": t.upload_date}
        for t in db.query(models.Task).all()
    ]
    completed = [
        {"userId": c.user_id, "taskId": c.task_id,
         "completedAt": c.completed_at.isoformat() if c.completed_at else None}
        for c in db.query(models.CompletedTask).all()
    ]
    rewards = [
        {"userId": r.user_id, "taskId": r.task_id, "amount": r.amount,
         "rewardedAt": r.rewarded_at.isoformat() if r.rewarded_at else None}
        for r in db.query(models.TaskReward).all()
    ]
    wallets = [
        {"userId": w.user_id, "incomeWallet": w.income_wallet, "personalWallet": w.personal_wallet,
         "totalEarnings": w.total_earnings, "totalWithdrawals": w.total_withdrawals,
         "jobLevel": w.job_level}
        for w in db.query(models.Wallet).all()
    ]
    return {
        "exportDate": datetime.now().isoformat(),
        "users": len(users),
        "tasks": len(tasks),
        "completedTasks": len(completed),
        "data": {"users": users, "tasks": tasks, "completedTasks": completed, "taskRewards": rewards,
                 "userData": wallets},
    }


def cleanup_completed(db: Session, days_old: int = 30) -> int:
    """Drop old completion records. Paid pairs stay in task_rewards."""
    cutoff = datetime.now() - timedelta(days=days_old)
    try:
        removed = db.query(models.CompletedTask).filter(models.CompletedTask.completed_at < cutoff)\
            .delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Cleanup failed: {e}")
        raise PersistenceError("Failed to clean up old data")
    logger.info(f"Cleaned up {removed} completed tasks older than {days_old} days")
    return removed
