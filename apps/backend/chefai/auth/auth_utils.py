# apps/backend/chefai/auth/auth_utils.py
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt


def create_access_token(
  email: str,
  plan: str,
  *,
  secret: str,
  alg: str = "HS256",
  expires_minutes: int = 60 * 24 * 30  # 30 日
) -> str:
  payload = {
    "sub": email,
    "plan": plan,
    "exp": datetime.now(timezone.utc) + timedelta(minutes=expires_minutes),
  }
  return jwt.encode(payload, secret, algorithm=alg)


def decode_token(token: str, *, secret: str, alg: str = "HS256") -> Optional[dict]:
  try:
    return jwt.decode(token, secret, algorithms=[alg])
  except jwt.PyJWTError:
    return None


def bearer_token(authorization: Optional[str]) -> Optional[str]:
  if not authorization or not authorization.startswith("Bearer "):
    return None
  return authorization[7:].strip() or None
