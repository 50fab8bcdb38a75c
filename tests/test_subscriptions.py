"""
Tests for the subscription lifecycle: subscribe, cancel, expire, renewal.
"""
from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from config import settings
from database import utcnow
from exceptions import CourseNotPublished, InvalidInput, NotFound, PaymentRequired, PermissionDenied, SubscriptionNotActive
from subscription.models import Subscription
from subscription.services import SubscriptionService


def _rows(db, student, course):
    return db.query(Subscription).filter(
        Subscription.student_id == student.id,
        Subscription.course_id == course.id,
    ).count()


def _make_overdue(db, subscription):
    subscription.end_date = utcnow() - timedelta(days=1)
    db.commit()


class TestSubscribe:
    def test_free_course_creates_active_subscription(self, db, student, free_course):
        sub = SubscriptionService.subscribe(student.id, free_course.id, db)

        assert sub.status == "active"
        assert sub.progress == 0
        assert sub.completed is False
        assert sub.end_date is None

    def test_subscribe_is_idempotent(self, db, student, free_course):
        first = SubscriptionService.subscribe(student.id, free_course.id, db)
        second = SubscriptionService.subscribe(student.id, free_course.id, db)

        assert first.id == second.id
        assert _rows(db, student, free_course) == 1

    def test_repeated_subscribe_keeps_one_row(self, db, student, free_course):
        for _ in range(5):
            SubscriptionService.subscribe(student.id, free_course.id, db)
        assert _rows(db, student, free_course) == 1

    def test_active_subscription_returned_unchanged(self, db, student, free_course):
        sub = SubscriptionService.subscribe(student.id, free_course.id, db)
        sub.progress = 40
        db.commit()

        again = SubscriptionService.subscribe(student.id, free_course.id, db)
        assert again.progress == 40

    def test_unknown_student(self, db, free_course):
        with pytest.raises(NotFound):
            SubscriptionService.subscribe(9999, free_course.id, db)

    def test_non_student_cannot_subscribe(self, db, make_user, free_course):
        teacher = make_user("teacher")
        with pytest.raises(NotFound):
            SubscriptionService.subscribe(teacher.id, free_course.id, db)

    def test_unknown_course(self, db, student):
        with pytest.raises(NotFound):
            SubscriptionService.subscribe(student.id, 9999, db)

    @pytest.mark.parametrize("status", ["draft", "archived"])
    def test_unpublished_course(self, db, student, teacher, make_course, status):
        course = make_course(teacher, status=status)
        with pytest.raises(CourseNotPublished):
            SubscriptionService.subscribe(student.id, course.id, db)
        assert _rows(db, student, course) == 0


class TestPaidSubscribe:
    def test_payment_required_without_payment(self, db, student, paid_course):
        with pytest.raises(PaymentRequired):
            SubscriptionService.subscribe(student.id, paid_course.id, db)
        assert _rows(db, student, paid_course) == 0

    def test_successful_payment_backs_subscription(self, db, student, paid_course, make_payment):
        payment = make_payment(student, paid_course)

        sub = SubscriptionService.subscribe(student.id, paid_course.id, db)
        db.refresh(payment)

        assert sub.status == "active"
        assert payment.subscription_id == sub.id
        assert sub.end_date - sub.start_date == timedelta(days=settings.PAID_SUBSCRIPTION_DURATION_DAYS)

    def test_payment_binding_lives_on_the_payment_row(self, db, student, paid_course, make_payment):
        payment = make_payment(student, paid_course)

        sub = SubscriptionService.subscribe(student.id, paid_course.id, db)
        db.refresh(sub)

        assert "payment_id" not in Subscription.__table__.columns
        assert [p.id for p in sub.payments] == [payment.id]

    def test_explicit_payment_reference(self, db, student, paid_course, make_payment):
        make_payment(student, paid_course, status="pending")
        good = make_payment(student, paid_course)

        SubscriptionService.subscribe(student.id, paid_course.id, db, payment_id=good.id)
        db.refresh(good)
        assert good.subscription_id is not None

    @pytest.mark.parametrize(
        "amount, currency, status",
        [
            ("49.99", "USD", "pending"),
            ("49.99", "USD", "failed"),
            ("10.00", "USD", "succeeded"),
            ("49.99", "EUR", "succeeded"),
        ],
    )
    def test_payment_that_does_not_count(self, db, student, paid_course, make_payment, amount, currency, status):
        make_payment(student, paid_course, amount=amount, currency=currency, status=status)
        with pytest.raises(PaymentRequired):
            SubscriptionService.subscribe(student.id, paid_course.id, db)

    def test_other_students_payment_does_not_count(self, db, student, other_student, paid_course, make_payment):
        make_payment(other_student, paid_course)
        with pytest.raises(PaymentRequired):
            SubscriptionService.subscribe(student.id, paid_course.id, db)

    def test_idempotent_call_does_not_consume_second_payment(self, db, student, paid_course, make_payment):
        make_payment(student, paid_course)
        SubscriptionService.subscribe(student.id, paid_course.id, db)
        spare = make_payment(student, paid_course)

        SubscriptionService.subscribe(student.id, paid_course.id, db)
        db.refresh(spare)
        assert spare.subscription_id is None

    def test_renewal_needs_a_new_payment(self, db, student, paid_course, make_payment):
        make_payment(student, paid_course)
        sub = SubscriptionService.subscribe(student.id, paid_course.id, db)
        SubscriptionService.cancel(sub.id, db)

        with pytest.raises(PaymentRequired):
            SubscriptionService.subscribe(student.id, paid_course.id, db)

        renewal = make_payment(student, paid_course)
        renewed = SubscriptionService.subscribe(student.id, paid_course.id, db)
        db.refresh(renewal)

        assert renewed.id == sub.id
        assert renewed.status == "active"
        assert renewal.subscription_id == sub.id
        assert len(renewed.payments) == 2


class TestResubscribe:
    def test_resubscribe_after_cancel_reuses_row(self, db, student, free_course):
        sub = SubscriptionService.subscribe(student.id, free_course.id, db)
        sub.progress = 100
        sub.completed = True
        db.commit()
        SubscriptionService.cancel(sub.id, db)

        renewed = SubscriptionService.subscribe(student.id, free_course.id, db)

        assert renewed.id == sub.id
        assert renewed.status == "active"
        assert renewed.progress == 0
        assert renewed.completed is False
        assert _rows(db, student, free_course) == 1

    def test_resubscribe_after_expiry_resets_dates(self, db, student, free_course, monkeypatch):
        monkeypatch.setattr(settings, "FREE_SUBSCRIPTION_DURATION_DAYS", 7)
        sub = SubscriptionService.subscribe(student.id, free_course.id, db)
        _make_overdue(db, sub)
        old_start = sub.start_date

        renewed = SubscriptionService.subscribe(student.id, free_course.id, db)

        assert renewed.id == sub.id
        assert renewed.status == "active"
        assert renewed.start_date >= old_start
        assert renewed.end_date > utcnow()

    def test_concurrent_insert_is_resolved_against_existing_row(self, db, student, free_course, monkeypatch):
        existing = SubscriptionService.subscribe(student.id, free_course.id, db)
        existing_id = existing.id
        original = SubscriptionService._find_subscription
        calls = []

        def stale_find(student_id, course_id, session):
            calls.append(student_id)
            if len(calls) == 1:
                return None
            return original(student_id, course_id, session)

        monkeypatch.setattr(SubscriptionService, "_find_subscription", staticmethod(stale_find))

        sub = SubscriptionService.subscribe(student.id, free_course.id, db)

        assert sub.id == existing_id
        assert len(calls) == 2
        assert _rows(db, student, free_course) == 1

    def test_store_rejects_duplicate_rows(self, db, student, free_course):
        db.add(Subscription(student_id=student.id, course_id=free_course.id, status="active", start_date=utcnow()))
        db.commit()
        db.add(Subscription(student_id=student.id, course_id=free_course.id, status="active", start_date=utcnow()))
        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()


class TestCancelAndExpire:
    def test_cancel(self, db, student, free_course):
        sub = SubscriptionService.subscribe(student.id, free_course.id, db)
        assert SubscriptionService.cancel(sub.id, db).status == "cancelled"

    def test_cancel_is_idempotent(self, db, student, free_course):
        sub = SubscriptionService.subscribe(student.id, free_course.id, db)
        SubscriptionService.cancel(sub.id, db)
        assert SubscriptionService.cancel(sub.id, db).status == "cancelled"

    def test_cancel_expired_is_noop(self, db, student, free_course):
        sub = SubscriptionService.subscribe(student.id, free_course.id, db)
        _make_overdue(db, sub)

        result = SubscriptionService.cancel(sub.id, db)
        assert result.status == "expired"

    def test_cancel_by_other_student_denied(self, db, student, other_student, free_course):
        sub = SubscriptionService.subscribe(student.id, free_course.id, db)
        with pytest.raises(PermissionDenied):
            SubscriptionService.cancel(sub.id, db, actor=other_student)
        db.refresh(sub)
        assert sub.status == "active"

    def test_admin_can_cancel(self, db, student, admin, free_course):
        sub = SubscriptionService.subscribe(student.id, free_course.id, db)
        assert SubscriptionService.cancel(sub.id, db, actor=admin).status == "cancelled"

    def test_cancel_unknown(self, db):
        with pytest.raises(NotFound):
            SubscriptionService.cancel(12345, db)

    def test_expire_when_end_date_passed(self, db, student, free_course):
        sub = SubscriptionService.subscribe(student.id, free_course.id, db)
        _make_overdue(db, sub)
        assert SubscriptionService.expire(sub.id, db).status == "expired"

    def test_expire_before_end_date_is_noop(self, db, student, paid_course, make_payment):
        make_payment(student, paid_course)
        sub = SubscriptionService.subscribe(student.id, paid_course.id, db)
        assert SubscriptionService.expire(sub.id, db).status == "active"

    def test_expire_does_not_touch_cancelled(self, db, student, free_course):
        sub = SubscriptionService.subscribe(student.id, free_course.id, db)
        SubscriptionService.cancel(sub.id, db)
        _make_overdue(db, sub)
        assert SubscriptionService.expire(sub.id, db).status == "cancelled"

    def test_lazy_and_sweep_expiry_agree(self, db, make_user, free_course):
        lazy_student, swept_student = make_user("student"), make_user("student")
        lazy = SubscriptionService.subscribe(lazy_student.id, free_course.id, db)
        swept = SubscriptionService.subscribe(swept_student.id, free_course.id, db)
        _make_overdue(db, lazy)
        _make_overdue(db, swept)

        lazy_status = SubscriptionService.get_subscription(lazy.id, db).status
        assert SubscriptionService.expire_due_subscriptions(db) == 1
        db.refresh(swept)

        assert lazy_status == swept.status == "expired"

    def test_user_listing_applies_expiry(self, db, student, free_course):
        sub = SubscriptionService.subscribe(student.id, free_course.id, db)
        _make_overdue(db, sub)

        subs = SubscriptionService.get_user_subscriptions(student.id, db)
        assert [s.status for s in subs] == ["expired"]
        assert SubscriptionService.get_user_subscriptions(student.id, db, status="active") == []


class TestRating:
    def test_rating_feeds_course_aggregate(self, db, make_user, free_course):
        for score in (5, 4):
            learner = make_user("student")
            sub = SubscriptionService.subscribe(learner.id, free_course.id, db)
            SubscriptionService.rate(sub.id, score, learner, db)
        db.refresh(free_course)

        assert free_course.rating == 4.5
        assert free_course.total_students == 2

    @pytest.mark.parametrize("score", [0, 6, True])
    def test_invalid_rating(self, db, student, free_course, score):
        sub = SubscriptionService.subscribe(student.id, free_course.id, db)
        with pytest.raises(InvalidInput):
            SubscriptionService.rate(sub.id, score, student, db)

    def test_only_subscriber_rates(self, db, student, other_student, free_course):
        sub = SubscriptionService.subscribe(student.id, free_course.id, db)
        with pytest.raises(PermissionDenied):
            SubscriptionService.rate(sub.id, 3, other_student, db)

    def test_cancelled_unfinished_cannot_rate(self, db, student, free_course):
        sub = SubscriptionService.subscribe(student.id, free_course.id, db)
        SubscriptionService.cancel(sub.id, db)
        with pytest.raises(SubscriptionNotActive):
            SubscriptionService.rate(sub.id, 3, student, db)
