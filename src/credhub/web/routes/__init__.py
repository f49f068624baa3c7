"""Route handlers for Web API."""

from credhub.web.routes.health import router as health_router
from credhub.web.routes.auth import router as auth_router
from credhub.web.routes.students import router as students_router
from credhub.web.routes.certificates import router as certificates_router
from credhub.web.routes.faculty import router as faculty_router
from credhub.web.routes.events import router as events_router

__all__ = [
    "health_router",
    "auth_router",
    "students_router",
    "certificates_router",
    "faculty_router",
    "events_router",
]
