import logging
from typing import Any, Optional, Tuple

import requests

from .base import StoreUnavailable, fail, ok

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 45  # seconds; hosted backends can take this long to cold-start


class RemoteStore:
    """TaskStore backed by the GetCash HTTP API."""

    def __init__(self, base_url: str, session=None, timeout: float = REQUEST_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout
        self.token: Optional[str] = None
        self.user_id: Optional[int] = None

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _request(self, method: str, endpoint: str, payload: Optional[dict] = None) -> Tuple[bool, Any]:
        url = f"{self.base_url}/api{endpoint}"
        try:
            response = self.session.request(method, url, json=payload, headers=self._headers(), timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("Request %s %s failed: %s", method, url, e)
            raise StoreUnavailable(f"Cannot connect to server: {e}") from e

        if response.status_code >= 500:
            logger.warning("Request %s %s returned %s", method, url, response.status_code)
            raise StoreUnavailable(f"Server error: {response.status_code}")

        try:
            data = response.json()
        except ValueError:
            data = None

        if response.status_code >= 400:
            message = data.get("message") if isinstance(data, dict) else None
            return False, {"message": message or f"Server error: {response.status_code}", "status": response.status_code}
        return True, data

    @staticmethod
    def _envelope(success: bool, data: Any, key: Optional[str] = None) -> dict:
        if not success:
            return fail(data["message"], status=data["status"])
        if key:
            return ok("OK", **{key: data})
        fields = dict(data or {})
        message = fields.pop("message", "OK")
        return ok(message, **fields)

    # --- auth ---
    def register(self, username, password, phone):
        success, data = self._request("POST", "/register", {"username": username, "password": password, "phone": phone})
        return self._envelope(success, data)

    def login(self, username, password):
        success, data = self._request("POST", "/login", {"username": username, "password": password})
        if success:
            self.token = data.get("token")
            self.user_id = data.get("userId")
        return self._envelope(success, data)

    def logout(self):
        self.token = None
        self.user_id = None

    # --- tasks ---
    def get_tasks(self):
        return self._envelope(*self._request("GET", "/tasks"), key="tasks")

    def create_task(self, title, price, image_data="", category=None):
        payload = {"title": title, "price": price, "imageData": image_data, "category": category}
        return self._envelope(*self._request("POST", "/tasks", payload))

    def delete_task(self, task_id):
        return self._envelope(*self._request("DELETE", f"/tasks/{task_id}"))

    def delete_all_tasks(self):
        return self._envelope(*self._request("DELETE", "/tasks"))

    def complete_task(self, task_id):
        return self._envelope(*self._request("POST", f"/tasks/{task_id}/complete"))

    def get_completed_tasks(self):
        return self._envelope(*self._request("GET", "/tasks/completed"), key="completedTasks")

    def remove_completed_task(self, task_id):
        return self._envelope(*self._request("DELETE", f"/tasks/{task_id}/complete"))

    # --- wallet ---
    def get_user_data(self):
        return self._envelope(*self._request("GET", "/user/data"))

    def get_job_levels(self):
        return self._envelope(*self._request("GET", "/job-levels"), key="jobLevels")

    def upgrade_job_level(self, target_level, investment_amount):
        payload = {"targetLevel": target_level, "investmentAmount": investment_amount}
        return self._envelope(*self._request("POST", "/user/upgrade-job", payload))

    def request_withdrawal(self, amount, phone, recipient_name, network):
        payload = {"amount": amount, "phone": phone, "recipientName": recipient_name, "network": network}
        return self._envelope(*self._request("POST", "/withdrawal/request", payload))

    def get_withdrawals(self):
        return self._envelope(*self._request("GET", "/withdrawal/history"), key="withdrawals")
