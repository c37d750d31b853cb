from .auth import router as auth_router
from .tasks import router as tasks_router
from .user import router as user_router
from .withdrawal import router as withdrawal_router
from .admin import router as admin_router
from .health import router as health_router

__all__ = ["auth_router", "tasks_router", "user_router", "withdrawal_router", "admin_router", "health_router"]
