"""
Promotion validation and status transition tests.

    GET  /api/promotions/<id>/validation
    POST /api/promotions/<id>/submit
    POST /api/promotions/<id>/approve
    POST /api/promotions/<id>/reject
"""

import pytest

from badger.core.context import RequestContext
from badger.core.exceptions import ConflictError
from badger.models import db
from badger.models.audit import AuditLog
from badger.models.badge_application import BadgeApplication
from badger.models.notification import ADMIN_BROADCAST, Notification
from badger.models.promotion import Promotion, PromotionBadge
from badger.services import promotion_service

TWO_TECH_GOLD = [{"category": "technical", "level": "gold", "count": 2}]


@pytest.fixture()
def ready_promotion(employee, make_template, make_promotion, make_application, reserve):
    """A draft that satisfies a 2 x technical/gold template."""
    promotion = make_promotion(employee, make_template(rules=TWO_TECH_GOLD))
    reserve(promotion, make_application(employee))
    reserve(promotion, make_application(employee))
    return promotion


@pytest.fixture()
def submitted_promotion(employee, make_template, make_promotion, make_application, reserve):
    promotion = make_promotion(employee, make_template(rules=TWO_TECH_GOLD), status="submitted")
    reserve(promotion, make_application(employee))
    reserve(promotion, make_application(employee))
    return promotion


# ═════════════════════════════════════════════════════════════════════════════
# Validation
# ═════════════════════════════════════════════════════════════════════════════


class TestValidation:
    def test_missing_one_badge(self, client, employee, make_template, make_promotion, make_application, reserve,
                               auth_header):
        promotion = make_promotion(employee, make_template(rules=TWO_TECH_GOLD))
        reserve(promotion, make_application(employee))

        res = client.get(f"/api/promotions/{promotion.id}/validation", headers=auth_header(employee))
        assert res.status_code == 200
        body = res.get_json()
        assert body["is_valid"] is False
        assert body["requirements"] == [
            {"category": "technical", "level": "gold", "required": 2, "current": 1, "satisfied": False},
        ]
        assert body["missing"] == [{"category": "technical", "level": "gold", "count": 1}]

    def test_any_category_rule(self, client, employee, make_template, make_promotion, make_application, reserve,
                               auth_header):
        template = make_template(rules=[{"category": "any", "level": "silver", "count": 2}])
        promotion = make_promotion(employee, template)
        reserve(promotion, make_application(employee, "organizational", "silver"))
        reserve(promotion, make_application(employee, "softskilled", "silver"))

        body = client.get(f"/api/promotions/{promotion.id}/validation", headers=auth_header(employee)).get_json()
        assert body["is_valid"] is True
        assert body["missing"] == []

    def test_validation_does_not_write(self, client, employee, ready_promotion, auth_header):
        before = AuditLog.query.count()
        client.get(f"/api/promotions/{ready_promotion.id}/validation", headers=auth_header(employee))
        assert AuditLog.query.count() == before
        assert db.session.get(Promotion, ready_promotion.id).status == "draft"

    def test_admin_can_validate_any(self, client, admin, ready_promotion, auth_header):
        res = client.get(f"/api/promotions/{ready_promotion.id}/validation", headers=auth_header(admin))
        assert res.status_code == 200
        assert res.get_json()["is_valid"] is True

    def test_other_user_gets_404(self, client, make_user, ready_promotion, auth_header):
        res = client.get(f"/api/promotions/{ready_promotion.id}/validation", headers=auth_header(make_user()))
        assert res.status_code == 404


# ═════════════════════════════════════════════════════════════════════════════
# Submit
# ═════════════════════════════════════════════════════════════════════════════


class TestSubmit:
    def test_submit_valid_promotion(self, client, employee, ready_promotion, auth_header):
        res = client.post(f"/api/promotions/{ready_promotion.id}/submit", headers=auth_header(employee))
        assert res.status_code == 200
        body = res.get_json()
        assert body["status"] == "submitted"
        assert body["submitted_at"] is not None

        assert AuditLog.query.filter_by(event_type="promotion.submitted").count() == 1
        notif = Notification.query.filter_by(event_type="promotion.submitted").one()
        assert notif.recipient_id == ADMIN_BROADCAST
        assert notif.promotion_id == ready_promotion.id

    def test_second_submit_is_invalid_status(self, client, employee, ready_promotion, auth_header):
        client.post(f"/api/promotions/{ready_promotion.id}/submit", headers=auth_header(employee))
        res = client.post(f"/api/promotions/{ready_promotion.id}/submit", headers=auth_header(employee))
        assert res.status_code == 409
        body = res.get_json()
        assert body["error"] == "invalid_status"
        assert body["current_status"] == "submitted"

    def test_unmet_requirements(self, client, employee, make_template, make_promotion, make_application, reserve,
                                auth_header):
        promotion = make_promotion(employee, make_template(rules=TWO_TECH_GOLD))
        reserve(promotion, make_application(employee))

        res = client.post(f"/api/promotions/{promotion.id}/submit", headers=auth_header(employee))
        assert res.status_code == 409
        body = res.get_json()
        assert body["error"] == "validation_failed"
        assert body["missing"] == [{"category": "technical", "level": "gold", "count": 1}]
        assert db.session.get(Promotion, promotion.id).status == "draft"

    def test_only_owner_submits(self, client, admin, ready_promotion, auth_header):
        res = client.post(f"/api/promotions/{ready_promotion.id}/submit", headers=auth_header(admin))
        assert res.status_code == 403

    def test_submitted_promotion_is_locked(self, client, employee, ready_promotion, make_application, auth_header):
        client.post(f"/api/promotions/{ready_promotion.id}/submit", headers=auth_header(employee))
        extra = make_application(employee)
        res = client.post(f"/api/promotions/{ready_promotion.id}/badges",
                          json={"badge_application_ids": [extra.id]}, headers=auth_header(employee))
        assert res.status_code == 403


# ═════════════════════════════════════════════════════════════════════════════
# Approve
# ═════════════════════════════════════════════════════════════════════════════


class TestApprove:
    def test_approve_consumes_badges(self, client, admin, employee, submitted_promotion, auth_header):
        badge_ids = [pb.badge_application_id for pb in submitted_promotion.badges]

        res = client.post(f"/api/promotions/{submitted_promotion.id}/approve", headers=auth_header(admin))
        assert res.status_code == 200
        body = res.get_json()
        assert body["status"] == "approved"
        assert body["approved_by"] == admin.id
        assert body["executed"] is True

        rows = PromotionBadge.query.filter_by(promotion_id=submitted_promotion.id).all()
        assert len(rows) == 2
        assert all(pb.consumed for pb in rows)
        for badge_id in badge_ids:
            assert db.session.get(BadgeApplication, badge_id).status == "used_in_promotion"

        notif = Notification.query.filter_by(event_type="promotion.approved").one()
        assert notif.recipient_id == employee.id

    def test_consumed_badge_cannot_be_reserved_again(
        self, client, admin, employee, submitted_promotion, make_template, make_promotion, auth_header,
    ):
        badge_id = submitted_promotion.badges[0].badge_application_id
        client.post(f"/api/promotions/{submitted_promotion.id}/approve", headers=auth_header(admin))

        other = make_promotion(employee, make_template())
        res = client.post(f"/api/promotions/{other.id}/badges",
                          json={"badge_application_ids": [badge_id]}, headers=auth_header(employee))
        assert res.status_code == 400
        assert res.get_json()["details"]["current_status"] == "used_in_promotion"

    def test_non_admin_forbidden(self, client, employee, submitted_promotion, auth_header):
        res = client.post(f"/api/promotions/{submitted_promotion.id}/approve", headers=auth_header(employee))
        assert res.status_code == 403
        assert res.get_json()["message"] == "Admin access required"

    def test_approve_draft_is_invalid_status(self, client, admin, ready_promotion, auth_header):
        res = client.post(f"/api/promotions/{ready_promotion.id}/approve", headers=auth_header(admin))
        assert res.status_code == 409
        assert res.get_json()["current_status"] == "draft"

    def test_approve_twice(self, client, admin, submitted_promotion, auth_header):
        client.post(f"/api/promotions/{submitted_promotion.id}/approve", headers=auth_header(admin))
        res = client.post(f"/api/promotions/{submitted_promotion.id}/approve", headers=auth_header(admin))
        assert res.status_code == 409
        assert res.get_json()["current_status"] == "approved"


# ═════════════════════════════════════════════════════════════════════════════
# Reject
# ═════════════════════════════════════════════════════════════════════════════


class TestReject:
    def test_reject_releases_reservations(
        self, client, admin, employee, submitted_promotion, make_template, make_promotion, auth_header,
    ):
        badge_ids = [pb.badge_application_id for pb in submitted_promotion.badges]

        res = client.post(f"/api/promotions/{submitted_promotion.id}/reject",
                          json={"reject_reason": "  Needs more leadership evidence  "},
                          headers=auth_header(admin))
        assert res.status_code == 200
        body = res.get_json()
        assert body["status"] == "rejected"
        assert body["reject_reason"] == "Needs more leadership evidence"
        assert body["rejected_by"] == admin.id

        assert PromotionBadge.query.filter_by(promotion_id=submitted_promotion.id).count() == 0
        for badge_id in badge_ids:
            assert db.session.get(BadgeApplication, badge_id).status == "accepted"

        # Released badges are reservable again
        other = make_promotion(employee, make_template())
        res = client.post(f"/api/promotions/{other.id}/badges",
                          json={"badge_application_ids": badge_ids}, headers=auth_header(employee))
        assert res.status_code == 200
        assert res.get_json()["added_count"] == 2

        notif = Notification.query.filter_by(event_type="promotion.rejected").one()
        assert notif.recipient_id == employee.id
        assert notif.message == "Needs more leadership evidence"

    @pytest.mark.parametrize("payload", [
        {},
        {"reject_reason": ""},
        {"reject_reason": "   "},
        {"reject_reason": 42},
        {"reject_reason": "x" * 2001},
    ])
    def test_invalid_reason(self, client, admin, submitted_promotion, auth_header, payload):
        res = client.post(f"/api/promotions/{submitted_promotion.id}/reject", json=payload,
                          headers=auth_header(admin))
        assert res.status_code == 400
        assert res.get_json()["error"] == "validation_error"
        assert db.session.get(Promotion, submitted_promotion.id).status == "submitted"

    def test_max_length_reason_accepted(self, client, admin, submitted_promotion, auth_header):
        res = client.post(f"/api/promotions/{submitted_promotion.id}/reject",
                          json={"reject_reason": "x" * 2000}, headers=auth_header(admin))
        assert res.status_code == 200

    def test_reject_approved_is_invalid_status(self, client, admin, submitted_promotion, auth_header):
        client.post(f"/api/promotions/{submitted_promotion.id}/approve", headers=auth_header(admin))
        res = client.post(f"/api/promotions/{submitted_promotion.id}/reject",
                          json={"reject_reason": "Too late"}, headers=auth_header(admin))
        assert res.status_code == 409
        assert res.get_json()["current_status"] == "approved"


# ═════════════════════════════════════════════════════════════════════════════
# Concurrent transitions
# ═════════════════════════════════════════════════════════════════════════════


class TestClaim:
    def test_lost_race_raises_conflict(self, submitted_promotion):
        promotion_id = submitted_promotion.id
        db.session.commit()

        promotion_service._claim(promotion_id, "submitted", {"status": "approved"})
        db.session.commit()

        with pytest.raises(ConflictError):
            promotion_service._claim(promotion_id, "submitted", {"status": "rejected"})
        assert db.session.get(Promotion, promotion_id).status == "approved"

    def test_service_approve_after_reject(self, admin, submitted_promotion):
        ctx = RequestContext(user_id=admin.id, is_admin=True)
        promotion_service.reject(submitted_promotion.id, "Not yet", ctx)

        with pytest.raises(ConflictError):
            promotion_service._claim(submitted_promotion.id, "submitted", {"status": "approved"})
