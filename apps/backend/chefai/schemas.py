# apps/backend/chefai/schemas.py
from __future__ import annotations

import json
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict

AnalysisKind = Literal["fridge", "dish"]

# prompted for, not enforced
DIFFICULTIES = ("Fácil", "Médio", "Difícil")


def _as_text_list(v: Any) -> Any:
    # models sometimes emit numbers or {"item": ..., "qty": ...} objects as list items
    if not isinstance(v, list):
        return v
    return [
        x if isinstance(x, str)
        else json.dumps(x, ensure_ascii=False) if isinstance(x, (dict, list))
        else str(x)
        for x in v
        if x is not None
    ]


TextList = Annotated[List[str], BeforeValidator(_as_text_list)]


class Recipe(BaseModel):
    # extra keys from the model are kept
    model_config = ConfigDict(extra="allow")

    name: str
    description: Optional[str] = None
    time: Optional[Union[str, int]] = None
    difficulty: Optional[str] = None
    servings: Optional[Union[int, str]] = None
    calories: Optional[Union[int, float, str]] = None
    ingredients: TextList
    steps: TextList
    tips: Optional[str] = None


class AnalysisOutcome(BaseModel):
    ingredients: Optional[List[str]] = None   # fridge
    dishName: Optional[str] = None            # dish
    confidence: Optional[str] = None          # dish: alta | média | baixa
    recipe: Recipe


# --- request bodies -----------------------------------------------------------
class AnalyzeImageIn(BaseModel):
    image: Optional[str] = None   # data URI or raw base64
    type: AnalysisKind = "dish"


class ModifyRecipeIn(BaseModel):
    # loose on purpose: the gateway validates and the route reports every failure as 500
    recipe: Optional[Any] = None
    modification: Optional[str] = None
