from .recipes import router as recipes_router
from .subscription import router as subscription_router

__all__ = ["recipes_router", "subscription_router"]
