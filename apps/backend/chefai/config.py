# apps/backend/chefai/config.py
from __future__ import annotations

import os
from typing import List, Mapping, Optional

from pydantic import BaseModel

DEFAULT_AI_GATEWAY_URL = "https://ai.gateway.lovable.dev/v1/chat/completions"
DEFAULT_AI_MODEL = "google/gemini-2.5-flash"


class Settings(BaseModel):
    """All runtime configuration, read once at startup."""

    database_url: str

    # AI gateway (OpenAI-style /chat/completions)
    ai_gateway_api_key: str
    ai_gateway_url: str = DEFAULT_AI_GATEWAY_URL
    ai_model: str = DEFAULT_AI_MODEL
    ai_timeout_sec: int = 60
    ai_analyze_max_tokens: int = 2000
    ai_modify_temperature: float = 0.7

    # SendGrid
    sendgrid_api_key: str
    email_from: str
    email_from_name: str = "ChefAI"
    email_reply_to: Optional[str] = None
    sendgrid_sandbox: bool = False
    sendgrid_timeout_sec: int = 20

    # Session token
    jwt_secret: str
    jwt_alg: str = "HS256"
    session_expires_minutes: int = 60 * 24 * 30  # 30 日

    code_ttl_minutes: int = 10

    cors_origins: List[str] = ["*"]
    app_version: str = "0.1.0"
    log_level: str = "INFO"
    auto_create_tables: bool = True


def _flag(v: Optional[str], default: bool) -> bool:
    if v is None or v == "":
        return default
    return v.strip().lower() in ("1", "true", "yes", "on")


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from the environment. Any missing required key raises
    RuntimeError so the process dies at startup instead of on the first request.
    """
    env = os.environ if env is None else env

    def need(name: str) -> str:
        v = env.get(name)
        if not v:
            raise RuntimeError(f"Missing environment variable: {name}")
        return v

    def opt(name: str, default: str) -> str:
        return env.get(name) or default

    origins = [o.strip() for o in opt("CORS_ORIGINS", "*").split(",") if o.strip()]

    return Settings(
        database_url=need("DATABASE_URL"),
        ai_gateway_api_key=need("AI_GATEWAY_API_KEY"),
        ai_gateway_url=opt("AI_GATEWAY_URL", DEFAULT_AI_GATEWAY_URL),
        ai_model=opt("AI_MODEL", DEFAULT_AI_MODEL),
        ai_timeout_sec=int(opt("AI_TIMEOUT_SEC", "60")),
        ai_analyze_max_tokens=int(opt("AI_ANALYZE_MAX_TOKENS", "2000")),
        ai_modify_temperature=float(opt("AI_MODIFY_TEMPERATURE", "0.7")),
        sendgrid_api_key=need("SENDGRID_API_KEY"),
        email_from=need("EMAIL_FROM"),
        email_from_name=opt("EMAIL_FROM_NAME", "ChefAI"),
        email_reply_to=env.get("EMAIL_REPLY_TO") or None,
        sendgrid_sandbox=_flag(env.get("SENDGRID_SANDBOX_MODE"), False),
        sendgrid_timeout_sec=int(opt("SENDGRID_TIMEOUT_SEC", "20")),
        jwt_secret=need("JWT_SECRET"),
        jwt_alg=opt("JWT_ALG", "HS256"),
        session_expires_minutes=int(opt("SESSION_EXPIRES_MINUTES", str(60 * 24 * 30))),
        code_ttl_minutes=int(opt("CODE_TTL_MINUTES", "10")),
        cors_origins=origins or ["*"],
        app_version=opt("APP_VERSION", "0.1.0"),
        log_level=opt("LOG_LEVEL", "INFO").upper(),
        auto_create_tables=_flag(env.get("AUTO_CREATE_TABLES"), True),
    )
