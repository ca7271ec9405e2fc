from fastapi import APIRouter

from portal.modules.activation.router import router as activation_router
from portal.modules.auth.router import router as auth_router
from portal.modules.notifications.router import router as notifications_router
from portal.modules.students.admin_router import router as admin_students_router
from portal.modules.students.router import dashboard_router, profile_router
from portal.modules.volunteer_hours.admin_router import router as admin_hours_router
from portal.modules.volunteer_hours.router import router as volunteer_hours_router

api_router = APIRouter()

# Public
api_router.include_router(activation_router, prefix="/activar", tags=["Activation"])
api_router.include_router(auth_router, prefix="/login", tags=["Authentication"])

# Students
api_router.include_router(dashboard_router, prefix="/dashboard", tags=["Students"])
api_router.include_router(profile_router, prefix="/completar-perfil", tags=["Students"])
api_router.include_router(
    volunteer_hours_router, prefix="/horas-voluntariado", tags=["Volunteer Hours"]
)
api_router.include_router(
    notifications_router, prefix="/notificaciones", tags=["Notifications"]
)

# Admin
api_router.include_router(admin_hours_router, prefix="/admin", tags=["Admin - Volunteer Hours"])
api_router.include_router(
    admin_students_router,
    prefix="/admin/estudiantes",
    tags=["Admin - Students"],
)
