# apps/backend/chefai/models.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import String, Integer, Boolean, DateTime, TIMESTAMP, func
from sqlalchemy.orm import Mapped, mapped_column

from .database import Base

PLANS = ("free", "normal", "master")
STATUSES = ("active", "cancelled", "overdue")


class Subscriber(Base):
    """
    付費用戶。由外部 billing 寫入；呢個 service 只讀。
    email 已正規化（lower + strip）。
    """
    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String, primary_key=True)

    plan: Mapped[str] = mapped_column(String, nullable=False, default="free")        # free | normal | master
    status: Mapped[str] = mapped_column(String, nullable=False, default="active")    # active | cancelled | overdue

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    @property
    def has_access(self) -> bool:
        return self.status == "active" and self.plan != "free"

    def to_dict(self) -> dict:
        return {
            "email": self.email,
            "plan": self.plan,
            "status": self.status,
            "hasAccess": self.has_access,
        }


class VerificationCode(Base):
    """One live row per email; a new issuance overwrites the old one."""
    __tablename__ = "verification_codes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    email: Mapped[str] = mapped_column(String, unique=True, index=True, nullable=False)
    code: Mapped[str] = mapped_column(String(6), nullable=False)

    # naive UTC
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    used: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
