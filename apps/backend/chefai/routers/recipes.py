# apps/backend/chefai/routers/recipes.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ..ai_gateway import RecipeGateway
from ..errors import GatewayError, InvalidInput
from ..schemas import AnalyzeImageIn, ModifyRecipeIn

logger = logging.getLogger(__name__)

router = APIRouter(tags=["recipes"])


def get_gateway(request: Request) -> RecipeGateway:
    return request.app.state.gateway


@router.post("/analyze-image")
def analyze_image(body: AnalyzeImageIn, gateway: RecipeGateway = Depends(get_gateway)):
    outcome = gateway.analyze_image(body.image, body.type)
    return {"success": True, "data": outcome.model_dump(exclude_none=True)}


@router.post("/modify-recipe")
def modify_recipe(body: ModifyRecipeIn, gateway: RecipeGateway = Depends(get_gateway)):
    # every failure on this route is reported as 500
    try:
        recipe = gateway.modify_recipe(body.recipe, body.modification)
    except (GatewayError, InvalidInput) as e:
        logger.error("Error modifying recipe: %s", e.message)
        return JSONResponse({"error": e.message}, status_code=500)
    return {"recipe": recipe}
