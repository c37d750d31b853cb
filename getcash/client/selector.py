import logging
from typing import Iterable, Optional, Union

import requests

from .base import StoreUnavailable, TaskStore
from .local import LocalStore
from .remote import RemoteStore

logger = logging.getLogger(__name__)

PROBE_TIMEOUT = 10  # seconds


def probe(base_urls: Iterable[str], timeout: float = PROBE_TIMEOUT, session=None) -> Optional[str]:
    """First base URL whose /health answers with 2xx, or None."""
    session = session or requests.Session()
    for url in base_urls:
        url = url.rstrip("/")
        try:
            response = session.get(f"{url}/health", timeout=timeout)
        except requests.RequestException as e:
            logger.info("Probe %s failed: %s", url, e)
            continue
        if 200 <= response.status_code < 300:
            logger.info("Connected to %s", url)
            return url
        logger.info("Probe %s returned %s", url, response.status_code)
    return None


class FallbackStore:
    """Remote first; the same call goes to the local mirror when the server
    is unreachable or failing (``StoreUnavailable``).

    Answers from the server, including its 4xx rejections, are returned as
    they are. Answers served locally carry ``offline: True``. A successful
    server login is mirrored locally so the session survives an outage.
    """

    def __init__(self, remote: TaskStore, local: LocalStore):
        self.remote = remote
        self.local = local

    def _call(self, operation: str, *args, **kwargs) -> dict:
        try:
            return getattr(self.remote, operation)(*args, **kwargs)
        except StoreUnavailable as e:
            logger.warning("Server unavailable (%s), using local store for %s", e, operation)
            result = getattr(self.local, operation)(*args, **kwargs)
            result["offline"] = True
            return result

    def _sync(self) -> None:
        """Refresh the mirror's wallet and completions from the server."""
        if self.local.current_user_id is None:
            return
        try:
            state = self.remote.get_user_data()
            completed = self.remote.get_completed_tasks()
        except StoreUnavailable as e:
            logger.warning("Server went away while syncing the local store (%s)", e)
            return
        self.local.mirror_state(
            state if state.get("success") else None,
            completed["completedTasks"] if completed.get("success") else None,
        )

    def _call_and_sync(self, operation: str, *args) -> dict:
        result = self._call(operation, *args)
        if result.get("success") and not result.get("offline"):
            self._sync()
        return result

    def register(self, username, password, phone):
        return self._call("register", username, password, phone)

    def login(self, username, password):
        try:
            result = self.remote.login(username, password)
        except StoreUnavailable as e:
            logger.warning("Server unavailable (%s), using local store for login", e)
            result = self.local.login(username, password)
            result["offline"] = True
            return result
        if result.get("success"):
            self.local.mirror_session(result["userId"], result["username"], password, result.get("isAdmin", False))
            self.get_tasks()
            self._sync()
        return result

    def logout(self):
        self.remote.logout()
        self.local.logout()

    def get_tasks(self):
        result = self._call("get_tasks")
        if result.get("success") and not result.get("offline"):
            self.local.mirror_tasks(result["tasks"])
        return result

    def create_task(self, title, price, image_data="", category=None):
        return self._call("create_task", title, price, image_data, category)

    def delete_task(self, task_id):
        return self._call("delete_task", task_id)

    def delete_all_tasks(self):
        return self._call("delete_all_tasks")

    def complete_task(self, task_id):
        return self._call_and_sync("complete_task", task_id)

    def get_completed_tasks(self):
        return self._call("get_completed_tasks")

    def remove_completed_task(self, task_id):
        return self._call_and_sync("remove_completed_task", task_id)

    def get_user_data(self):
        result = self._call("get_user_data")
        if result.get("success") and not result.get("offline"):
            self.local.mirror_state(result)
        return result

    def get_job_levels(self):
        return self._call("get_job_levels")

    def upgrade_job_level(self, target_level, investment_amount):
        return self._call_and_sync("upgrade_job_level", target_level, investment_amount)

    def request_withdrawal(self, amount, phone, recipient_name, network):
        return self._call_and_sync("request_withdrawal", amount, phone, recipient_name, network)

    def get_withdrawals(self):
        return self._call("get_withdrawals")


def connect(base_urls: Iterable[str], local_path: str, session=None,
            probe_timeout: float = PROBE_TIMEOUT) -> Union[FallbackStore, LocalStore]:
    """Pick the backend for this session.

    A reachable server gives a FallbackStore over it; otherwise the local
    mirror is used directly.
    """
    local = LocalStore(local_path)
    url = probe(base_urls, timeout=probe_timeout, session=session)
    if url is None:
        logger.warning("No server reachable, running on local store %s", local_path)
        return local
    return FallbackStore(RemoteStore(url, session=session), local)
