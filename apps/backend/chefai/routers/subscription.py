# apps/backend/chefai/routers/subscription.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from ..auth.auth_routes import get_access_service
from ..auth.service import AccessService

router = APIRouter(tags=["subscription"])


@router.get("/subscription")
def read_subscription(
    email: str = Query(...),
    access: AccessService = Depends(get_access_service),
):
    """
    Plan / status lookup for the client-side gate.
    hasAccess = status == "active" and plan != "free"
    """
    return access.check_subscription(email).to_dict()
