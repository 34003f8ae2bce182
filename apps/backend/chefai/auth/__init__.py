from .auth_routes import router as auth_router
from .service import AccessService

__all__ = ["auth_router", "AccessService"]
