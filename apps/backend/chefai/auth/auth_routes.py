# apps/backend/chefai/auth/auth_routes.py
from typing import Annotated, Any, Optional

from fastapi import APIRouter, Depends, Header, Request
from pydantic import BaseModel, BeforeValidator, EmailStr

from ..config import Settings
from ..errors import Unauthorized
from .auth_utils import bearer_token, create_access_token, decode_token
from .service import AccessService, normalize_email

router = APIRouter(tags=["auth"])


def _normalize(v: Any) -> Any:
  return normalize_email(v) if isinstance(v, str) else v


# lower + strip 先，再交俾 EmailStr 驗證
NormalizedEmail = Annotated[EmailStr, BeforeValidator(_normalize)]


def get_access_service(request: Request) -> AccessService:
  return request.app.state.access_service


def get_settings(request: Request) -> Settings:
  return request.app.state.settings


class RequestCodeIn(BaseModel):
  email: NormalizedEmail


@router.post("/send-verification-code")
def send_verification_code(
  body: RequestCodeIn,
  access: AccessService = Depends(get_access_service),
):
  access.issue_code(body.email)
  return {"success": True, "message": "Código enviado para seu email"}


class VerifyCodeIn(BaseModel):
  email: NormalizedEmail
  code: str


class UserOut(BaseModel):
  email: str
  plan: str
  hasAccess: bool


class AuthOut(BaseModel):
  success: bool = True
  user: UserOut
  token: str


@router.post("/verify-code", response_model=AuthOut)
def verify_code(
  body: VerifyCodeIn,
  access: AccessService = Depends(get_access_service),
  settings: Settings = Depends(get_settings),
):
  sub = access.verify_code(body.email, body.code)

  token = create_access_token(
    sub.email,
    sub.plan,
    secret=settings.jwt_secret,
    alg=settings.jwt_alg,
    expires_minutes=settings.session_expires_minutes,
  )
  return AuthOut(
    user=UserOut(email=sub.email, plan=sub.plan, hasAccess=sub.has_access),
    token=token,
  )


@router.get("/auth/me")
def read_me(
  authorization: Optional[str] = Header(None),
  access: AccessService = Depends(get_access_service),
  settings: Settings = Depends(get_settings),
):
  token = bearer_token(authorization)
  if not token:
    raise Unauthorized()

  claims = decode_token(token, secret=settings.jwt_secret, alg=settings.jwt_alg)
  if not claims or not claims.get("sub"):
    raise Unauthorized()

  return access.check_subscription(claims["sub"]).to_dict()
