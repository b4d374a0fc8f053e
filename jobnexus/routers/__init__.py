from .users import router as users_router
from .profile import router as profile_router
from .jobs import router as jobs_router
from .applications import router as applications_router
from .ai import router as ai_router
from .messages import router as conversations_router, templates_router as message_templates_router
from .notification import router as notification_router
from .dashboard import router as dashboard_router
from .candidates import router as candidates_router
from .files import router as files_router

__all__ = [
    "users_router", "profile_router", "jobs_router", "applications_router",
    "ai_router", "conversations_router", "message_templates_router",
    "notification_router", "dashboard_router", "candidates_router", "files_router"
]
