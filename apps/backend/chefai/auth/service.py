# apps/backend/chefai/auth/service.py
"""
One-time-code login gated on subscription.

A code row is keyed by email and goes ISSUED -> CONSUMED (used=true) exactly
once, or silently expires. Both transitions are single SQL statements so the
database does the arbitration between concurrent callers:

  * issue:   INSERT ... ON CONFLICT(email) DO UPDATE   (last writer wins)
  * consume: UPDATE ... WHERE used=false AND expires_at > now   (rowcount == 1)
"""
from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Protocol, Tuple

from sqlalchemy import func, update
from sqlalchemy.orm import Session, sessionmaker

from ..config import Settings
from ..email_templates import compose_verification_code_email
from ..errors import (
  DeliveryFailed,
  InvalidOrExpiredCode,
  NoActiveSubscription,
  NotFound,
)
from ..models import Subscriber, VerificationCode

logger = logging.getLogger(__name__)


class Mailer(Protocol):
  def send(self, to_email: str, subject: str, html: str) -> Tuple[bool, str]: ...


def utcnow() -> datetime:
  """Naive UTC, matching the expires_at column."""
  return datetime.now(timezone.utc).replace(tzinfo=None)


def normalize_email(email: Optional[str]) -> str:
  return (email or "").strip().lower()


def generate_code() -> str:
  return f"{100000 + secrets.randbelow(900000):06d}"


def mask_code(code: str) -> str:
  return code[:2] + "*" * max(len(code) - 2, 0)


def _insert_for(session: Session):
  dialect = session.get_bind().dialect.name
  if dialect == "postgresql":
    from sqlalchemy.dialects.postgresql import insert
  elif dialect == "sqlite":
    from sqlalchemy.dialects.sqlite import insert
  else:
    raise RuntimeError(f"verification code upsert not supported on {dialect}")
  return insert


class AccessService:
  def __init__(
    self,
    session_factory: sessionmaker,
    mailer: Mailer,
    settings: Settings,
    now: Callable[[], datetime] = utcnow,
  ):
    self.session_factory = session_factory
    self.mailer = mailer
    self.ttl = timedelta(minutes=settings.code_ttl_minutes)
    self.now = now

  # ------------------------------------------------------------------
  def check_subscription(self, email: str) -> Subscriber:
    email = normalize_email(email)
    with self.session_factory() as s:
      sub = s.get(Subscriber, email) if email else None
    if sub is None:
      raise NotFound()
    return sub

  # ------------------------------------------------------------------
  def issue_code(self, email: str) -> str:
    """
    Store a fresh code for an eligible subscriber and email it.

    The row is committed before sending; a failed send raises DeliveryFailed
    but leaves the code live until it expires.
    """
    email = normalize_email(email)
    sub = self.check_subscription(email)
    if not sub.has_access:
      logger.info("code refused for %s: plan=%s status=%s", email, sub.plan, sub.status)
      raise NoActiveSubscription()

    code = generate_code()
    expires_at = self.now() + self.ttl

    with self.session_factory() as s, s.begin():
      insert = _insert_for(s)
      stmt = insert(VerificationCode).values(
        email=email,
        code=code,
        expires_at=expires_at,
        used=False,
      )
      stmt = stmt.on_conflict_do_update(
        index_elements=["email"],
        set_={
          "code": stmt.excluded.code,
          "expires_at": stmt.excluded.expires_at,
          "used": False,
          "created_at": func.now(),
        },
      )
      s.execute(stmt)

    minutes = int(self.ttl.total_seconds() // 60)
    subject, html = compose_verification_code_email(code=code, minutes=minutes)
    ok, msg = self.mailer.send(email, subject, html)
    if not ok:
      logger.error("verification email to %s failed: %s", email, msg)
      raise DeliveryFailed()

    logger.info("verification code %s sent to %s (%s)", mask_code(code), email, msg)
    return code

  # ------------------------------------------------------------------
  def verify_code(self, email: str, code: str) -> Subscriber:
    email = normalize_email(email)
    code = (code or "").strip()
    if not email or not code:
      raise InvalidOrExpiredCode()

    with self.session_factory() as s, s.begin():
      result = s.execute(
        update(VerificationCode)
        .where(
          VerificationCode.email == email,
          VerificationCode.code == code,
          VerificationCode.used == False,  # noqa: E712
          VerificationCode.expires_at > self.now(),
        )
        .values(used=True)
        .execution_options(synchronize_session=False)
      )
      consumed = result.rowcount == 1

    if not consumed:
      # wrong / used / expired all look the same to the caller
      logger.info("verification failed for %s", email)
      raise InvalidOrExpiredCode()

    logger.info("verification code consumed for %s", email)

    # the code stays consumed; plan/status may have changed since issuance
    try:
      sub = self.check_subscription(email)
    except NotFound:
      logger.warning("subscriber %s vanished after code was consumed", email)
      raise InvalidOrExpiredCode()
    if not sub.has_access:
      logger.info("session refused for %s: plan=%s status=%s", email, sub.plan, sub.status)
      raise NoActiveSubscription()
    return sub
