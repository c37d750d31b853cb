from .base import StoreUnavailable, TaskStore
from .local import LocalStore
from .remote import RemoteStore
from .selector import FallbackStore, connect, probe

__all__ = ["StoreUnavailable", "TaskStore", "LocalStore", "RemoteStore", "FallbackStore", "connect", "probe"]
