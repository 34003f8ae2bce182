# apps/backend/chefai/mailer_sendgrid.py
from __future__ import annotations

import logging
import re
from html import unescape
from typing import Optional, Tuple

import requests

from .config import Settings

logger = logging.getLogger(__name__)

SEND_URL = "https://api.sendgrid.com/v3/mail/send"


def _html_to_text(html: str) -> str:
    """Ultra-light HTML→text，提升送達率（提供純文字part）"""
    text = re.sub(r"(?i)<br\s*/?>", "\n", html)
    text = re.sub(r"(?i)</p\s*>", "\n\n", text)
    text = re.sub(r"(?is)<(style|head)[^>]*>.*?</\1\s*>", "", text)
    text = re.sub(r"<[^>]+>", "", text)
    text = re.sub(r"\n\s*\n\s*\n+", "\n\n", text)
    return unescape(text).strip()


class SendGridMailer:
    """
    Single-shot sender over the SendGrid v3 REST API.
    Never raises for delivery problems; returns (ok, message) instead.
    """

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.api_key = settings.sendgrid_api_key
        self.email_from = settings.email_from
        self.email_from_name = settings.email_from_name
        self.reply_to = settings.email_reply_to
        self.sandbox = settings.sendgrid_sandbox
        self.timeout = settings.sendgrid_timeout_sec
        self.http = session or requests.Session()

    def build_payload(self, to_email: str, subject: str, html: str) -> dict:
        payload: dict = {
            "personalizations": [
                {"to": [{"email": to_email}]}
            ],
            "from": {"email": self.email_from, "name": self.email_from_name},
            "subject": subject,
            "content": [
                {"type": "text/plain", "value": _html_to_text(html)},
                {"type": "text/html",  "value": html},
            ],
            # 追蹤設定（驗證碼信一律關閉，避免連結被改寫）
            "tracking_settings": {
                "click_tracking": {"enable": False},
                "open_tracking": {"enable": False},
                "subscription_tracking": {"enable": False},
            },
        }
        if self.reply_to:
            payload["reply_to"] = {"email": self.reply_to}
        # Sandbox 模式（不真正發送）
        if self.sandbox:
            payload["mail_settings"] = {"sandbox_mode": {"enable": True}}
        return payload

    def send(self, to_email: str, subject: str, html: str) -> Tuple[bool, str]:
        if not to_email:
            return False, "Missing to_email"

        try:
            r = self.http.post(
                SEND_URL,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json=self.build_payload(to_email, subject, html),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            return False, f"network error: {e}"

        # SendGrid usually returns 202 Accepted on success
        if r.status_code == 202:
            msg_id = r.headers.get("X-Message-Id") or ""
            return True, f"accepted{(' id=' + msg_id) if msg_id else ''}"

        # surface useful error text from SendGrid
        return False, f"{r.status_code}: {r.text}"
