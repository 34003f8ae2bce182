# apps/backend/chefai/errors.py
"""
User-facing error kinds. Every failure leaving a service is one of these;
the FastAPI handlers in main.py turn them into {"error": message} bodies.
"""
from __future__ import annotations

from typing import Optional


class ChefAIError(Exception):
    status_code: int = 500
    default_message: str = "Erro interno"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_body(self) -> dict:
        return {"error": self.message}


# --- Access authorization ---------------------------------------------------
class AuthError(ChefAIError):
    pass


class NotFound(AuthError):
    status_code = 404
    default_message = "Email não encontrado. Por favor, adquira um plano."


class NoActiveSubscription(AuthError):
    status_code = 403
    default_message = "Você não possui um plano ativo."


class InvalidOrExpiredCode(AuthError):
    status_code = 400
    default_message = "Código inválido ou expirado"


class DeliveryFailed(AuthError):
    status_code = 500
    default_message = "Erro ao enviar código"


class Unauthorized(AuthError):
    status_code = 401
    default_message = "Sessão inválida ou expirada"


# --- AI gateway -------------------------------------------------------------
class GatewayError(ChefAIError):
    pass


class RateLimited(GatewayError):
    status_code = 429
    default_message = "Muitas requisições. Tente novamente em alguns segundos."


class QuotaExceeded(GatewayError):
    status_code = 402
    default_message = "Créditos insuficientes. Adicione créditos no workspace."


class UpstreamError(GatewayError):
    status_code = 500
    default_message = "Erro ao consultar a IA"


class EmptyResponse(GatewayError):
    status_code = 500
    default_message = "Nenhuma resposta da IA"


class MalformedResponse(GatewayError):
    status_code = 500
    default_message = "Erro ao processar resposta da IA"

    def __init__(self, message: Optional[str] = None, raw: Optional[str] = None):
        super().__init__(message)
        self.raw = raw

    def to_body(self) -> dict:
        body = super().to_body()
        if self.raw is not None:
            body["raw"] = self.raw
        return body


class IncompleteRecipe(GatewayError):
    status_code = 500
    default_message = "Receita modificada incompleta"


# --- shared -----------------------------------------------------------------
class InvalidInput(ChefAIError):
    status_code = 400
    default_message = "Requisição inválida"
