from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, ForeignKey, Text, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from .database import Base

class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    phone = Column(String(30), nullable=False)
    is_admin = Column(Boolean, default=False)
    created_at = Column(DateTime, default=func.now())

    wallet = relationship("Wallet", uselist=False, back_populates="user")

class Task(Base):
    __tablename__ = "tasks"
    id = Column(Integer, primary_key=True)
    title = Column(String(100), nullable=False)
    price = Column(Integer, nullable=False)      # displayed reward, UGX
    image_data = Column(Text, default="")
    category = Column(String(50), default="general")
    status = Column(String(20), default="available")
    upload_date = Column(String(20), index=True)  # YYYY-MM-DD
    created_at = Column(DateTime, default=func.now())

class CompletedTask(Base):
    __tablename__ = "completed_tasks"
    __table_args__ = (UniqueConstraint("user_id", "task_id", name="uq_completed_user_task"),)
    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id"), nullable=False)
    completed_at = Column(DateTime, default=func.now())

class TaskReward(Base):
    """Permanent record that a (user, task) pair was paid.

    Completion rows can be removed or cleaned up; this row is only dropped
    together with the task itself.
    """
    __tablename__ = "task_rewards"
    __table_args__ = (UniqueConstraint("user_id", "task_id", name="uq_reward_user_task"),)
    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id"), nullable=False)
    amount = Column(Integer, nullable=False)
    rewarded_at = Column(DateTime, default=func.now())

class Wallet(Base):
    __tablename__ = "user_data"
    __table_args__ = (CheckConstraint("personal_wallet >= 0", name="ck_personal_wallet_non_negative"),)
    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    income_wallet = Column(Float, default=0.0)
    personal_wallet = Column(Float, default=0.0)
    total_earnings = Column(Float, default=0.0)
    total_withdrawals = Column(Float, default=0.0)
    job_level = Column(String(20), default="trainee")
    tasks_completed_today = Column(Integer, default=0)
    last_task_date = Column(String(20))
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="wallet")

class Withdrawal(Base):
    __tablename__ = "withdrawals"
    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True)
    amount = Column(Float)
    fee = Column(Integer)
    final_amount = Column(Float)
    phone = Column(String(30))
    recipient_name = Column(String(100))
    network = Column(String(30))
    status = Column(String(20), default="Processing")
    created_at = Column(DateTime, default=func.now())
    user = relationship("User")

class AuditLog(Base):
    __tablename__ = "audit_logs"
    id = Column(Integer, primary_key=True)
    operator_id = Column(Integer)
    action = Column(String(50))
    target_id = Column(Integer)
    detail = Column(Text)
    created_at = Column(DateTime, default=func.now())
