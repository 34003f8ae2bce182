"""Tests for one-time-code issuance and consumption."""

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest
from sqlalchemy import delete, select, update

from chefai.auth.service import AccessService, generate_code, mask_code, normalize_email
from chefai.database import init_db, make_engine, make_session_factory
from chefai.errors import (
    DeliveryFailed,
    InvalidOrExpiredCode,
    NoActiveSubscription,
    NotFound,
)
from chefai.models import Subscriber, VerificationCode

from conftest import FakeMailer


def _rows(session_factory):
    with session_factory() as s:
        return s.scalars(select(VerificationCode)).all()


class TestHelpers:

    def test_normalize_email(self):
        assert normalize_email("  Ana@X.com ") == "ana@x.com"
        assert normalize_email(None) == ""

    def test_generate_code_is_six_digits(self):
        for _ in range(200):
            code = generate_code()
            assert len(code) == 6 and code.isdigit()
            assert 100000 <= int(code) <= 999999

    def test_mask_code(self):
        assert mask_code("123456") == "12****"


class TestIssueCode:

    def test_unknown_email_writes_nothing(self, access_service, session_factory, mailer):
        with pytest.raises(NotFound):
            access_service.issue_code("ghost@x.com")
        assert _rows(session_factory) == []
        assert mailer.sent == []

    @pytest.mark.parametrize("plan,status", [
        ("free", "active"),
        ("normal", "cancelled"),
        ("master", "overdue"),
    ])
    def test_no_active_subscription(self, access_service, add_subscriber, session_factory, plan, status):
        add_subscriber("bia@x.com", plan=plan, status=status)
        with pytest.raises(NoActiveSubscription):
            access_service.issue_code("bia@x.com")
        assert _rows(session_factory) == []

    def test_stores_code_with_ten_minute_expiry(self, access_service, add_subscriber, session_factory, clock, mailer):
        add_subscriber("ana@x.com")
        code = access_service.issue_code("Ana@X.com ")

        rows = _rows(session_factory)
        assert len(rows) == 1
        row = rows[0]
        assert row.email == "ana@x.com"
        assert row.code == code
        assert len(row.code) == 6 and row.code.isdigit()
        assert row.expires_at == clock.current + timedelta(minutes=10)
        assert row.used is False

        assert len(mailer.sent) == 1
        to, subject, html = mailer.sent[0]
        assert to == "ana@x.com"
        assert "ChefAI" in subject
        assert code in html

    def test_reissue_replaces_previous_row(self, access_service, add_subscriber, session_factory):
        add_subscriber("ana@x.com")
        access_service.issue_code("ana@x.com")
        second = access_service.issue_code("ana@x.com")

        rows = _rows(session_factory)
        assert len(rows) == 1
        assert rows[0].code == second

    def test_delivery_failure_keeps_code(self, access_service, add_subscriber, session_factory, mailer):
        add_subscriber("ana@x.com")
        mailer.ok = False
        with pytest.raises(DeliveryFailed):
            access_service.issue_code("ana@x.com")
        assert len(_rows(session_factory)) == 1


class TestVerifyCode:

    def test_code_is_single_use(self, access_service, add_subscriber):
        add_subscriber("ana@x.com", plan="master")
        code = access_service.issue_code("Ana@X.com ")

        sub = access_service.verify_code("ana@x.com", code)
        assert sub.email == "ana@x.com"
        assert sub.plan == "master"
        assert sub.has_access is True

        with pytest.raises(InvalidOrExpiredCode):
            access_service.verify_code("ana@x.com", code)

    def test_wrong_code(self, access_service, add_subscriber):
        add_subscriber("ana@x.com")
        code = access_service.issue_code("ana@x.com")
        wrong = "000000" if code != "000000" else "111111"
        with pytest.raises(InvalidOrExpiredCode):
            access_service.verify_code("ana@x.com", wrong)

    def test_expired_code_is_rejected_and_not_consumed(self, access_service, add_subscriber, session_factory, clock):
        add_subscriber("ana@x.com")
        code = access_service.issue_code("ana@x.com")

        clock.current += timedelta(minutes=10, seconds=1)
        with pytest.raises(InvalidOrExpiredCode):
            access_service.verify_code("ana@x.com", code)
        assert _rows(session_factory)[0].used is False

    def test_code_valid_just_before_expiry(self, access_service, add_subscriber, clock):
        add_subscriber("ana@x.com")
        code = access_service.issue_code("ana@x.com")
        clock.current += timedelta(minutes=9, seconds=59)
        assert access_service.verify_code("ana@x.com", code).email == "ana@x.com"

    def test_new_issuance_invalidates_old_code(self, access_service, add_subscriber, monkeypatch):
        add_subscriber("ana@x.com")
        codes = iter(["111111", "222222"])
        monkeypatch.setattr("chefai.auth.service.generate_code", lambda: next(codes))

        old = access_service.issue_code("ana@x.com")
        new = access_service.issue_code("ana@x.com")

        with pytest.raises(InvalidOrExpiredCode):
            access_service.verify_code("ana@x.com", old)
        assert access_service.verify_code("ana@x.com", new).email == "ana@x.com"

    def test_reissue_after_use_gives_a_fresh_code(self, access_service, add_subscriber, monkeypatch):
        add_subscriber("ana@x.com")
        monkeypatch.setattr("chefai.auth.service.generate_code", lambda: "333333")

        access_service.verify_code("ana@x.com", access_service.issue_code("ana@x.com"))
        access_service.issue_code("ana@x.com")
        assert access_service.verify_code("ana@x.com", "333333").email == "ana@x.com"

    def test_code_for_other_email_is_rejected(self, access_service, add_subscriber):
        add_subscriber("ana@x.com")
        add_subscriber("bia@x.com")
        code = access_service.issue_code("ana@x.com")
        with pytest.raises(InvalidOrExpiredCode):
            access_service.verify_code("bia@x.com", code)

    def test_blank_code(self, access_service):
        with pytest.raises(InvalidOrExpiredCode):
            access_service.verify_code("ana@x.com", "  ")

    def test_cancelled_after_issuance_gets_no_session(self, access_service, add_subscriber, session_factory):
        add_subscriber("ana@x.com", plan="master")
        code = access_service.issue_code("ana@x.com")
        with session_factory() as s, s.begin():
            s.execute(update(Subscriber).where(Subscriber.email == "ana@x.com").values(status="cancelled"))

        with pytest.raises(NoActiveSubscription):
            access_service.verify_code("ana@x.com", code)
        assert _rows(session_factory)[0].used is True

    def test_subscriber_removed_after_issuance(self, access_service, add_subscriber, session_factory):
        add_subscriber("ana@x.com")
        code = access_service.issue_code("ana@x.com")
        with session_factory() as s, s.begin():
            s.execute(delete(Subscriber).where(Subscriber.email == "ana@x.com"))

        with pytest.raises(InvalidOrExpiredCode):
            access_service.verify_code("ana@x.com", code)


class TestCheckSubscription:

    def test_derived_access(self, access_service, add_subscriber):
        add_subscriber("free@x.com", plan="free")
        add_subscriber("gone@x.com", plan="normal", status="cancelled")
        add_subscriber("ok@x.com", plan="normal")

        assert access_service.check_subscription("FREE@x.com").has_access is False
        assert access_service.check_subscription("gone@x.com").has_access is False
        assert access_service.check_subscription(" ok@x.com").to_dict() == {
            "email": "ok@x.com",
            "plan": "normal",
            "status": "active",
            "hasAccess": True,
        }

    def test_unknown(self, access_service):
        with pytest.raises(NotFound):
            access_service.check_subscription("ghost@x.com")


class TestConcurrentVerify:

    @pytest.fixture
    def file_service(self, tmp_path, settings, clock):
        engine = make_engine(f"sqlite:///{tmp_path / 'codes.db'}")
        init_db(engine)
        factory = make_session_factory(engine)
        with factory() as s, s.begin():
            s.add(Subscriber(email="ana@x.com", plan="master", status="active"))
        yield AccessService(factory, FakeMailer(), settings, now=clock)
        engine.dispose()

    def test_same_code_twice_at_once_succeeds_once(self, file_service):
        code = file_service.issue_code("ana@x.com")
        barrier = threading.Barrier(2)

        def attempt(_):
            barrier.wait(timeout=10)
            try:
                return file_service.verify_code("ana@x.com", code).email
            except InvalidOrExpiredCode as e:
                return e

        with ThreadPoolExecutor(max_workers=2) as pool:
            results = list(pool.map(attempt, range(2)))

        assert results.count("ana@x.com") == 1
        assert sum(isinstance(r, InvalidOrExpiredCode) for r in results) == 1
