# maintdesk/routes/__init__.py
from .auth import router as auth_router
from .commands import router as commands_router
from .imports import router as import_router
from .tickets import router as tickets_router
from .users import router as users_router


def include_routes(app):
    """Include all routes in the FastAPI app."""
    app.include_router(auth_router)
    app.include_router(tickets_router)
    app.include_router(import_router)
    app.include_router(users_router)
    app.include_router(commands_router)
