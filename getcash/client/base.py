"""
Storage capability shared by the remote (HTTP) and local (on-disk) backends.

Every operation returns an envelope ``{"success": bool, "message": str, ...}``
so calling code does not care which backend answered.
"""
from typing import Any, Optional, Protocol


class StoreUnavailable(Exception):
    """The backend could not be reached or failed on its side (5xx)."""


def ok(message: str, **fields: Any) -> dict:
    return {"success": True, "message": message, **fields}


def fail(message: str, **fields: Any) -> dict:
    return {"success": False, "message": message, **fields}


class TaskStore(Protocol):
    def register(self, username: str, password: str, phone: str) -> dict: ...

    def login(self, username: str, password: str) -> dict: ...

    def logout(self) -> None: ...

    def get_tasks(self) -> dict: ...

    def create_task(self, title: str, price: int, image_data: str = "", category: Optional[str] = None) -> dict: ...

    def delete_task(self, task_id: int) -> dict: ...

    def delete_all_tasks(self) -> dict: ...

    def complete_task(self, task_id: int) -> dict: ...

    def get_completed_tasks(self) -> dict: ...

    def remove_completed_task(self, task_id: int) -> dict: ...

    def get_user_data(self) -> dict: ...

    def get_job_levels(self) -> dict: ...

    def upgrade_job_level(self, target_level: str, investment_amount: float) -> dict: ...

    def request_withdrawal(self, amount: float, phone: str, recipient_name: str, network: str) -> dict: ...

    def get_withdrawals(self) -> dict: ...
