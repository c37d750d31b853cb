"""
On-disk mirror of the server used while the backend is unreachable.

The whole state lives in one JSON document. Records use the server's field
names (``userId``, ``taskId``, ``completedAt`` ...) so they can be reconciled
with server data later, and wallet operations go through the same rules as
the server services.
"""
import json
import logging
import os
import tempfile
from datetime import date, datetime
from typing import Optional

from ..core import security
from ..core.config import DEFAULT_TASKS, settings
from ..core.exceptions import GetCashError
from ..services.rules import (
    check_daily_quota,
    compute_fee,
    tasks_done_today,
    validate_upgrade,
    validate_withdrawal,
)
from ..services.tariff import DEFAULT_JOB_LEVEL, get_tariff, tariff_table
from .base import fail, ok

logger = logging.getLogger(__name__)

APP_VERSION = "1.0.0"


def _now() -> str:
    return datetime.now().isoformat()


def _new_wallet() -> dict:
    return {
        "incomeWallet": 0.0,
        "personalWallet": 0.0,
        "totalEarnings": 0.0,
        "totalWithdrawals": 0.0,
        "jobLevel": DEFAULT_JOB_LEVEL,
        "tasksCompletedToday": 0,
        "lastTaskDate": None,
    }


class LocalStore:
    """TaskStore persisted to a JSON file."""

    def __init__(self, path: str, admin_username: Optional[str] = None, admin_password: Optional[str] = None,
                 admin_phone: Optional[str] = None):
        self.path = path
        self.admin_username = admin_username or settings.ADMIN_USERNAME
        self.admin_password = admin_password or settings.ADMIN_PASSWORD
        self.admin_phone = admin_phone or settings.ADMIN_PHONE
        self.current_user_id: Optional[int] = None
        self._seed()

    # --- persistence ---
    def _load(self) -> dict:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, encoding="utf-8") as f:
            return json.load(f)

    def _save(self, data: dict) -> None:
        data.setdefault("settings", {})["lastUpdated"] = _now()
        folder = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(folder, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=folder, suffix=".tmp")
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        os.replace(tmp, self.path)

    def _seed(self) -> None:
        """One-time initialization: document skeleton, starter tasks, admin account."""
        data = self._load()
        created = not data
        for key in ("users", "tasks", "completedTasks", "rewardedTasks", "withdrawals"):
            data.setdefault(key, [])
        data.setdefault("settings", {"appVersion": APP_VERSION})

        if created:
            today = date.today().isoformat()
            for i, t in enumerate(DEFAULT_TASKS, start=1):
                data["tasks"].append({"id": i, "imageData": "", "status": "available",
                                      "uploadDate": today, "createdAt": _now(), **t})

        if not any(u["username"] == self.admin_username for u in data["users"]):
            data["users"].insert(0, {
                "id": self._next_id(data["users"]),
                "username": self.admin_username,
                "phone": self.admin_phone,
                "password": security.get_password_hash(self.admin_password),
                "isAdmin": True,
                "joinDate": _now(),
                "wallet": _new_wallet(),
            })
            logger.info("Local store: admin user '%s' seeded", self.admin_username)
        self._save(data)

    @staticmethod
    def _next_id(rows) -> int:
        return max((r["id"] for r in rows), default=0) + 1

    def _current_user(self, data: dict) -> Optional[dict]:
        if self.current_user_id is None:
            return None
        return next((u for u in data["users"] if u["id"] == self.current_user_id), None)

    @staticmethod
    def _public_user(user: dict) -> dict:
        return {
            "id": user["id"],
            "username": user["username"],
            "phone": user["phone"],
            "isAdmin": bool(user.get("isAdmin")),
            "joinDate": user.get("joinDate"),
        }

    @staticmethod
    def _wallet_state(user: dict, today: str) -> dict:
        wallet = user["wallet"]
        tariff = get_tariff(wallet.get("jobLevel"))
        return {
            "userId": user["id"],
            "incomeWallet": wallet["incomeWallet"],
            "personalWallet": wallet["personalWallet"],
            "totalEarnings": wallet["totalEarnings"],
            "totalWithdrawals": wallet["totalWithdrawals"],
            "jobLevel": tariff.name,
            "perTaskEarning": tariff.per_task_reward,
            "dailyTaskQuota": tariff.daily_task_quota,
            "tasksCompletedToday": tasks_done_today(wallet.get("tasksCompletedToday"), wallet.get("lastTaskDate"), today),
            "lastTaskDate": wallet.get("lastTaskDate"),
        }

    # --- auth ---
    def register(self, username, password, phone):
        if not username or not password or not phone:
            return fail("Username, password, and phone number required.")
        data = self._load()
        if any(u["username"] == username for u in data["users"]):
            return fail("Username already exists.")

        user = {
            "id": self._next_id(data["users"]),
            "username": username,
            "phone": phone,
            "password": security.get_password_hash(password),
            "isAdmin": False,
            "joinDate": _now(),
            "wallet": _new_wallet(),
        }
        data["users"].append(user)
        self._save(data)
        logger.info("Local store: registered %s", username)
        return ok("Registration successful.", userId=user["id"], user=self._public_user(user))

    def login(self, username, password):
        data = self._load()
        user = next((u for u in data["users"] if u["username"] == username), None)
        if not user or not password or not security.verify_password(password, user["password"]):
            return fail("Invalid credentials.")
        self.current_user_id = user["id"]
        return ok("Login successful.", userId=user["id"], username=user["username"],
                  isAdmin=bool(user.get("isAdmin")), user=self._public_user(user))

    def logout(self):
        self.current_user_id = None

    # --- mirroring from the server ---
    def mirror_session(self, user_id: int, username: str, password: str, is_admin: bool = False) -> int:
        """Copy a server-side login into the mirror and sign in locally.

        The account keeps the server id when that id is free here. Returns
        the local user id.
        """
        data = self._load()
        user = next((u for u in data["users"] if u["username"] == username), None)
        if user is None:
            taken = {u["id"] for u in data["users"]}
            user = {
                "id": user_id if user_id not in taken else self._next_id(data["users"]),
                "username": username,
                "phone": "",
                "joinDate": _now(),
                "wallet": _new_wallet(),
            }
            data["users"].append(user)
        user["password"] = security.get_password_hash(password)
        user["isAdmin"] = bool(is_admin)
        self._save(data)
        self.current_user_id = user["id"]
        logger.info("Local store: mirrored session of %s", username)
        return user["id"]

    def mirror_state(self, state: Optional[dict] = None, completed: Optional[list] = None) -> None:
        """Overwrite the signed-in user's wallet and completions with the
        server's view. Server completions count as paid here too."""
        data = self._load()
        user = self._current_user(data)
        if not user:
            return
        if state:
            for key in ("incomeWallet", "personalWallet", "totalEarnings", "totalWithdrawals",
                        "jobLevel", "tasksCompletedToday", "lastTaskDate"):
                if key in state:
                    user["wallet"][key] = state[key]
            if state.get("phone"):
                user["phone"] = state["phone"]

        if completed is not None:
            data["completedTasks"] = [c for c in data["completedTasks"] if c["userId"] != user["id"]]
            paid = {r["taskId"] for r in data["rewardedTasks"] if r["userId"] == user["id"]}
            for task_id in completed:
                data["completedTasks"].append({"userId": user["id"], "taskId": task_id, "completedAt": _now()})
                if task_id not in paid:
                    data["rewardedTasks"].append({"userId": user["id"], "taskId": task_id, "amount": None,
                                                  "rewardedAt": _now()})
        self._save(data)

    def mirror_tasks(self, tasks: list) -> None:
        """Replace the local task list with the server's."""
        data = self._load()
        data["tasks"] = [dict(t) for t in tasks]
        self._save(data)

    # --- tasks ---
    def get_tasks(self):
        data = self._load()
        tasks = sorted(data["tasks"], key=lambda t: (t.get("createdAt") or "", t["id"]), reverse=True)
        return ok("OK", tasks=tasks)

    def _require_admin(self, data: dict) -> Optional[dict]:
        user = self._current_user(data)
        if not user:
            return fail("Please login first")
        if not user.get("isAdmin"):
            return fail("Admin access required")
        return None

    def create_task(self, title, price, image_data="", category=None):
        data = self._load()
        denied = self._require_admin(data)
        if denied:
            return denied
        if not title or price is None:
            return fail("Title and price are required")
        task = {
            "id": self._next_id(data["tasks"]),
            "title": title,
            "price": int(price),
            "imageData": image_data or "",
            "category": category or "general",
            "status": "available",
            "uploadDate": date.today().isoformat(),
            "createdAt": _now(),
        }
        data["tasks"].append(task)
        self._save(data)
        return ok("Task created successfully", task=task)

    def delete_task(self, task_id):
        data = self._load()
        denied = self._require_admin(data)
        if denied:
            return denied
        before = len(data["tasks"])
        data["tasks"] = [t for t in data["tasks"] if t["id"] != task_id]
        if len(data["tasks"]) == before:
            return fail("Task not found")
        data["completedTasks"] = [c for c in data["completedTasks"] if c["taskId"] != task_id]
        data["rewardedTasks"] = [r for r in data["rewardedTasks"] if r["taskId"] != task_id]
        self._save(data)
        return ok("Task deleted successfully", deleted=True, taskId=task_id)

    def delete_all_tasks(self):
        data = self._load()
        denied = self._require_admin(data)
        if denied:
            return denied
        count = len(data["tasks"])
        data["tasks"] = []
        data["completedTasks"] = []
        data["rewardedTasks"] = []
        self._save(data)
        return ok("All tasks deleted successfully", deleted=count)

    # --- completions ---
    def complete_task(self, task_id):
        data = self._load()
        user = self._current_user(data)
        if not user:
            return fail("Please login first")
        if not any(t["id"] == task_id for t in data["tasks"]):
            return fail("Task not found")
        if any(c["userId"] == user["id"] and c["taskId"] == task_id for c in data["completedTasks"]):
            return ok("already completed", alreadyCompleted=True)
        if any(r["userId"] == user["id"] and r["taskId"] == task_id for r in data["rewardedTasks"]):
            # paid before; only the completion record comes back
            data["completedTasks"].append({"userId": user["id"], "taskId": task_id, "completedAt": _now()})
            self._save(data)
            return ok("already completed", alreadyCompleted=True)

        wallet = user["wallet"]
        today = date.today().isoformat()
        tariff = get_tariff(wallet.get("jobLevel"))
        done_today = tasks_done_today(wallet.get("tasksCompletedToday"), wallet.get("lastTaskDate"), today)
        try:
            check_daily_quota(tariff, done_today)
        except GetCashError as e:
            return fail(e.message)

        reward = tariff.per_task_reward
        wallet["personalWallet"] += reward
        wallet["totalEarnings"] += reward
        wallet["tasksCompletedToday"] = done_today + 1
        wallet["lastTaskDate"] = today
        data["completedTasks"].append({"userId": user["id"], "taskId": task_id, "completedAt": _now()})
        data["rewardedTasks"].append({"userId": user["id"], "taskId": task_id, "amount": reward, "rewardedAt": _now()})
        self._save(data)
        return ok("Task completed successfully", earnings=reward, newBalance=wallet["personalWallet"],
                  jobLevel=tariff.name)

    def get_completed_tasks(self):
        data = self._load()
        user = self._current_user(data)
        if not user:
            return fail("Please login first")
        ids = [c["taskId"] for c in data["completedTasks"] if c["userId"] == user["id"]]
        return ok("OK", completedTasks=ids)

    def remove_completed_task(self, task_id):
        data = self._load()
        user = self._current_user(data)
        if not user:
            return fail("Please login first")
        before = len(data["completedTasks"])
        data["completedTasks"] = [
            c for c in data["completedTasks"] if not (c["userId"] == user["id"] and c["taskId"] == task_id)
        ]
        removed = len(data["completedTasks"]) < before
        self._save(data)
        return ok("Completion removed" if removed else "Task was not completed", removed=removed)

    # --- wallet ---
    def get_user_data(self):
        data = self._load()
        user = self._current_user(data)
        if not user:
            return fail("Please login first")
        state = self._wallet_state(user, date.today().isoformat())
        return ok("OK", username=user["username"], phone=user["phone"], **state)

    def get_job_levels(self):
        return ok("OK", jobLevels=tariff_table())

    def upgrade_job_level(self, target_level, investment_amount):
        data = self._load()
        user = self._current_user(data)
        if not user:
            return fail("Please login first")
        try:
            tariff = validate_upgrade(target_level, investment_amount)
        except GetCashError as e:
            return fail(e.message)
        user["wallet"]["jobLevel"] = tariff.name
        self._save(data)
        return ok(f"Job level upgraded to {tariff.name}", jobLevel=tariff.name,
                  perTaskEarning=tariff.per_task_reward)

    def request_withdrawal(self, amount, phone, recipient_name, network):
        data = self._load()
        user = self._current_user(data)
        if not user:
            return fail("Please login first")
        wallet = user["wallet"]
        try:
            validate_withdrawal(amount, phone, recipient_name, network, wallet["personalWallet"])
        except GetCashError as e:
            return fail(e.message)

        fee = compute_fee(amount)
        wallet["personalWallet"] -= amount
        wallet["totalWithdrawals"] += amount
        record = {
            "id": self._next_id(data["withdrawals"]),
            "userId": user["id"],
            "amount": amount,
            "fee": fee,
            "finalAmount": amount - fee,
            "phone": phone.strip(),
            "recipientName": recipient_name.strip(),
            "network": network.strip(),
            "status": "Processing",
            "timestamp": _now(),
        }
        data["withdrawals"].append(record)
        self._save(data)
        return ok("Withdrawal request submitted successfully", withdrawal=record,
                  newBalance=wallet["personalWallet"])

    def get_withdrawals(self):
        data = self._load()
        user = self._current_user(data)
        if not user:
            return fail("Please login first")
        rows = [w for w in reversed(data["withdrawals"]) if w["userId"] == user["id"]]
        return ok("OK", withdrawals=rows)
