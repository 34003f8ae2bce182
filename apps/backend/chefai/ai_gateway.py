# apps/backend/chefai/ai_gateway.py
"""
Client for the hosted multimodal chat model (OpenAI-style /chat/completions).

The upstream is an untrusted text generator: every reply goes through
json_extract and is checked before anything reaches the caller, and every
transport failure is mapped onto the errors in chefai.errors.
"""
from __future__ import annotations

import base64
import json
import logging
from typing import Any, Dict, List, Mapping, Optional, Union

import requests
from pydantic import ValidationError

from .config import Settings
from .errors import (
    EmptyResponse,
    IncompleteRecipe,
    InvalidInput,
    MalformedResponse,
    QuotaExceeded,
    RateLimited,
    UpstreamError,
)
from .json_extract import JsonExtractionError, extract_json, find_json_block
from .prompts import ANALYSIS_PROMPTS, build_modify_prompt
from .schemas import AnalysisOutcome, Recipe

logger = logging.getLogger(__name__)

ANALYZE_FAILED = "Erro ao analisar imagem"
MODIFY_FAILED = "Erro ao modificar receita com IA"
REQUIRED_RECIPE_FIELDS = ("name", "ingredients", "steps")


def to_data_uri(image: Union[str, bytes], mime: str = "image/jpeg") -> str:
    if isinstance(image, (bytes, bytearray)):
        return f"data:{mime};base64,{base64.b64encode(bytes(image)).decode('ascii')}"
    image = image.strip()
    if image.startswith("data:"):
        return image
    return f"data:{mime};base64,{image}"


def message_content(data: Any) -> Optional[str]:
    """choices[0].message.content, joining text parts when the model returns a list."""
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return None
    if isinstance(content, list):
        content = "".join(
            p.get("text", "") for p in content if isinstance(p, dict) and p.get("type") == "text"
        )
    if not isinstance(content, str) or not content.strip():
        return None
    return content


class RecipeGateway:
    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.url = settings.ai_gateway_url
        self.api_key = settings.ai_gateway_api_key
        self.model = settings.ai_model
        self.timeout = settings.ai_timeout_sec
        self.max_tokens = settings.ai_analyze_max_tokens
        self.temperature = settings.ai_modify_temperature
        self.http = session or requests.Session()

    # ------------------------------------------------------------------
    def _chat(self, messages: List[Dict[str, Any]], failure: str, classify: bool, **extra: Any) -> str:
        payload: Dict[str, Any] = {"model": self.model, "messages": messages}
        payload.update(extra)

        try:
            resp = self.http.post(
                self.url,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("AI gateway unreachable: %s", e)
            raise UpstreamError(failure) from e

        if not 200 <= resp.status_code < 300:
            logger.error("AI gateway error: %s %s", resp.status_code, resp.text[:500])
            if classify and resp.status_code == 429:
                raise RateLimited()
            if classify and resp.status_code == 402:
                raise QuotaExceeded()
            raise UpstreamError(failure)

        try:
            data = resp.json()
        except ValueError as e:
            logger.error("AI gateway returned non-JSON body: %s", resp.text[:500])
            raise UpstreamError(failure) from e

        content = message_content(data)
        if content is None:
            raise EmptyResponse()
        return content

    # ------------------------------------------------------------------
    def analyze_image(self, image: Union[str, bytes, None], kind: str) -> AnalysisOutcome:
        if not image or (isinstance(image, str) and not image.strip()):
            raise InvalidInput("Imagem é obrigatória")
        if kind not in ANALYSIS_PROMPTS:
            raise InvalidInput(f"Tipo de análise inválido: {kind}")

        system_prompt, user_prompt = ANALYSIS_PROMPTS[kind]
        logger.info("Analyzing image, type: %s", kind)

        content = self._chat(
            [
                {"role": "system", "content": system_prompt},
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": user_prompt},
                        {"type": "image_url", "image_url": {"url": to_data_uri(image)}},
                    ],
                },
            ],
            failure=ANALYZE_FAILED,
            classify=True,
            max_tokens=self.max_tokens,
        )

        try:
            result = extract_json(content)
        except JsonExtractionError:
            logger.error("Failed to parse AI response: %s", content[:500])
            raise MalformedResponse(raw=content)

        if not isinstance(result, dict) or not isinstance(result.get("recipe"), dict):
            logger.error("AI response without recipe: %s", content[:500])
            raise MalformedResponse(raw=content)

        try:
            recipe = Recipe.model_validate(result["recipe"])
        except ValidationError as e:
            logger.error("AI recipe failed validation: %s", e)
            raise MalformedResponse(raw=content)

        outcome = AnalysisOutcome(recipe=recipe)
        if kind == "fridge":
            detected = result.get("ingredients")
            if isinstance(detected, list):
                outcome.ingredients = [str(i) for i in detected]
        else:
            if result.get("dishName"):
                outcome.dishName = str(result["dishName"])
            if result.get("confidence"):
                outcome.confidence = str(result["confidence"])

        logger.info("Analysis successful: %s", outcome.dishName or recipe.name)
        return outcome

    # ------------------------------------------------------------------
    def modify_recipe(self, recipe: Union[Recipe, Mapping[str, Any], None], modification: Optional[str]) -> Dict[str, Any]:
        if not recipe or not modification or not modification.strip():
            raise InvalidInput("Receita e modificação são obrigatórios")

        if isinstance(recipe, Recipe):
            current = recipe.model_dump(exclude_none=True)
        else:
            if not isinstance(recipe, Mapping):
                raise InvalidInput("Receita inválida")
            try:
                Recipe.model_validate(recipe)
            except ValidationError as e:
                logger.warning("Rejected recipe to modify: %s", e)
                raise InvalidInput("Receita inválida")
            current = dict(recipe)
        logger.info("Modifying recipe %r: %s", current.get("name"), modification)

        content = self._chat(
            [{"role": "user", "content": build_modify_prompt(current, modification.strip())}],
            failure=MODIFY_FAILED,
            classify=False,
            temperature=self.temperature,
        )

        block = find_json_block(content)
        if block is None:
            logger.error("No JSON object in AI response: %s", content[:500])
            raise MalformedResponse("Formato de resposta inválido", raw=content)
        try:
            modified = json.loads(block)
        except ValueError:
            logger.error("Invalid JSON in AI response: %s", block[:500])
            raise MalformedResponse("Formato de resposta inválido", raw=content)

        if not isinstance(modified, dict) or any(not modified.get(f) for f in REQUIRED_RECIPE_FIELDS):
            raise IncompleteRecipe()

        return modified
