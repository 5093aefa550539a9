"""
Badge reservation tests — POST/DELETE /api/promotions/<id>/badges.

Covers:
    - reserving accepted badges, idempotent re-add
    - all-or-nothing failures (missing / not accepted / reserved elsewhere)
    - reservation_conflict body naming the owning promotion
    - conflicts raised by the unique index at insert time
    - releasing reservations and not_in_promotion
    - ownership / draft-only guards
    - the partial unique index itself
"""

import uuid

import pytest
from sqlalchemy.exc import IntegrityError

from badger.models import db
from badger.models.audit import AuditLog
from badger.models.promotion import PromotionBadge
from badger.services import promotion_service


def _reserved_ids(promotion_id):
    return {pb.badge_application_id for pb in PromotionBadge.query.filter_by(promotion_id=promotion_id).all()}


@pytest.fixture()
def draft(employee, make_template, make_promotion):
    return make_promotion(employee, make_template())


class TestAddBadges:
    def test_reserve_accepted_badges(self, client, employee, draft, make_application, auth_header):
        a1 = make_application(employee)
        a2 = make_application(employee, "organizational", "silver")

        res = client.post(
            f"/api/promotions/{draft.id}/badges",
            json={"badge_application_ids": [a1.id, a2.id]},
            headers=auth_header(employee),
        )
        assert res.status_code == 200
        body = res.get_json()
        assert body["added_count"] == 2
        assert body["promotion_id"] == draft.id
        assert _reserved_ids(draft.id) == {a1.id, a2.id}

    def test_re_adding_same_badge_is_skipped(self, client, employee, draft, make_application, reserve, auth_header):
        a1 = make_application(employee)
        reserve(draft, a1)

        res = client.post(
            f"/api/promotions/{draft.id}/badges",
            json={"badge_application_ids": [a1.id, a1.id]},
            headers=auth_header(employee),
        )
        assert res.status_code == 200
        assert res.get_json()["added_count"] == 0
        assert PromotionBadge.query.filter_by(promotion_id=draft.id).count() == 1

    def test_conflict_names_owning_promotion(
        self, client, employee, make_template, make_promotion, make_application, auth_header,
    ):
        template = make_template()
        first = make_promotion(employee, template)
        second = make_promotion(employee, template)
        badge = make_application(employee)

        res = client.post(f"/api/promotions/{first.id}/badges",
                          json={"badge_application_ids": [badge.id]}, headers=auth_header(employee))
        assert res.status_code == 200

        res = client.post(f"/api/promotions/{second.id}/badges",
                          json={"badge_application_ids": [badge.id]}, headers=auth_header(employee))
        assert res.status_code == 409
        body = res.get_json()
        assert body["error"] == "reservation_conflict"
        assert body["conflict_type"] == "badge_already_reserved"
        assert body["badge_application_id"] == badge.id
        assert body["owning_promotion_id"] == first.id
        assert _reserved_ids(second.id) == set()

        audit = AuditLog.query.filter_by(event_type="reservation.conflict").one()
        assert audit.payload["owning_promotion_id"] == first.id

    def test_insert_time_conflict_names_winner(
        self, client, employee, make_template, make_promotion, make_application, reserve, auth_header,
        monkeypatch,
    ):
        template = make_template()
        first = make_promotion(employee, template)
        second = make_promotion(employee, template)
        badge = make_application(employee)
        reserve(first, badge)
        # The service rolls back on IntegrityError; keep the fixtures.
        db.session.commit()
        first_id, second_id, badge_id = first.id, second.id, badge.id

        # Another request reserved the badge between the holder lookup and the insert.
        monkeypatch.setattr(promotion_service, "_holders", lambda ids: {})

        res = client.post(f"/api/promotions/{second_id}/badges",
                          json={"badge_application_ids": [badge_id]}, headers=auth_header(employee))
        assert res.status_code == 409
        body = res.get_json()
        assert body["error"] == "reservation_conflict"
        assert body["badge_application_id"] == badge_id
        assert body["owning_promotion_id"] == first_id
        assert _reserved_ids(second_id) == set()
        assert _reserved_ids(first_id) == {badge_id}

        audit = AuditLog.query.filter_by(event_type="reservation.conflict").one()
        assert audit.payload["owning_promotion_id"] == first_id

    def test_conflict_is_all_or_nothing(
        self, client, employee, make_template, make_promotion, make_application, reserve, auth_header,
    ):
        template = make_template()
        other = make_promotion(employee, template)
        target = make_promotion(employee, template)
        free = make_application(employee)
        taken = make_application(employee)
        reserve(other, taken)

        res = client.post(f"/api/promotions/{target.id}/badges",
                          json={"badge_application_ids": [free.id, taken.id]}, headers=auth_header(employee))
        assert res.status_code == 409
        assert _reserved_ids(target.id) == set()

    def test_submitted_promotion_still_holds_reservation(
        self, client, employee, make_template, make_promotion, make_application, reserve, auth_header,
    ):
        template = make_template()
        submitted = make_promotion(employee, template, status="submitted")
        target = make_promotion(employee, template)
        badge = make_application(employee)
        reserve(submitted, badge)

        res = client.post(f"/api/promotions/{target.id}/badges",
                          json={"badge_application_ids": [badge.id]}, headers=auth_header(employee))
        assert res.status_code == 409
        assert res.get_json()["owning_promotion_id"] == submitted.id

    def test_unknown_badge_application(self, client, employee, draft, auth_header):
        missing = str(uuid.uuid4())
        res = client.post(f"/api/promotions/{draft.id}/badges",
                          json={"badge_application_ids": [missing]}, headers=auth_header(employee))
        assert res.status_code == 400
        body = res.get_json()
        assert body["error"] == "invalid_badge_application"
        assert body["details"]["badge_application_id"] == missing

    @pytest.mark.parametrize("status", ["draft", "submitted", "rejected", "used_in_promotion"])
    def test_badge_must_be_accepted(self, client, employee, draft, make_application, auth_header, status):
        ok = make_application(employee)
        bad = make_application(employee, status=status)

        res = client.post(f"/api/promotions/{draft.id}/badges",
                          json={"badge_application_ids": [ok.id, bad.id]}, headers=auth_header(employee))
        assert res.status_code == 400
        body = res.get_json()
        assert body["error"] == "invalid_badge_application"
        assert body["details"]["current_status"] == status
        assert _reserved_ids(draft.id) == set()

    @pytest.mark.parametrize("payload", [
        {},
        {"badge_application_ids": []},
        {"badge_application_ids": "not-a-list"},
        {"badge_application_ids": ["not-a-uuid"]},
    ])
    def test_bad_payload(self, client, employee, draft, auth_header, payload):
        res = client.post(f"/api/promotions/{draft.id}/badges", json=payload, headers=auth_header(employee))
        assert res.status_code == 400
        assert res.get_json()["error"] == "validation_error"

    def test_too_many_ids(self, client, employee, draft, auth_header):
        ids = [str(uuid.uuid4()) for _ in range(101)]
        res = client.post(f"/api/promotions/{draft.id}/badges",
                          json={"badge_application_ids": ids}, headers=auth_header(employee))
        assert res.status_code == 400

    def test_not_owner_forbidden(self, client, make_user, draft, employee, make_application, auth_header):
        intruder = make_user()
        badge = make_application(employee)
        res = client.post(f"/api/promotions/{draft.id}/badges",
                          json={"badge_application_ids": [badge.id]}, headers=auth_header(intruder))
        assert res.status_code == 403
        assert res.get_json()["error"] == "forbidden"

    def test_non_draft_forbidden(self, client, employee, make_template, make_promotion, make_application, auth_header):
        submitted = make_promotion(employee, make_template(), status="submitted")
        badge = make_application(employee)
        res = client.post(f"/api/promotions/{submitted.id}/badges",
                          json={"badge_application_ids": [badge.id]}, headers=auth_header(employee))
        assert res.status_code == 403
        assert "not in draft status" in res.get_json()["message"]

    def test_unknown_promotion(self, client, employee, make_application, auth_header):
        badge = make_application(employee)
        res = client.post(f"/api/promotions/{uuid.uuid4()}/badges",
                          json={"badge_application_ids": [badge.id]}, headers=auth_header(employee))
        assert res.status_code == 404


class TestRemoveBadges:
    def test_release_reservation(self, client, employee, draft, make_application, reserve, auth_header):
        a1 = make_application(employee)
        a2 = make_application(employee)
        reserve(draft, a1)
        reserve(draft, a2)

        res = client.delete(f"/api/promotions/{draft.id}/badges",
                            json={"badge_application_ids": [a1.id]}, headers=auth_header(employee))
        assert res.status_code == 200
        assert res.get_json()["removed_count"] == 1
        assert _reserved_ids(draft.id) == {a2.id}

    def test_released_badge_can_be_reserved_elsewhere(
        self, client, employee, make_template, make_promotion, make_application, reserve, auth_header,
    ):
        template = make_template()
        first = make_promotion(employee, template)
        second = make_promotion(employee, template)
        badge = make_application(employee)
        reserve(first, badge)

        res = client.delete(f"/api/promotions/{first.id}/badges",
                            json={"badge_application_ids": [badge.id]}, headers=auth_header(employee))
        assert res.status_code == 200
        res = client.post(f"/api/promotions/{second.id}/badges",
                          json={"badge_application_ids": [badge.id]}, headers=auth_header(employee))
        assert res.status_code == 200
        assert _reserved_ids(second.id) == {badge.id}

    def test_not_in_promotion(self, client, employee, draft, make_application, reserve, auth_header):
        reserved = make_application(employee)
        stranger = make_application(employee)
        reserve(draft, reserved)

        res = client.delete(f"/api/promotions/{draft.id}/badges",
                            json={"badge_application_ids": [reserved.id, stranger.id]},
                            headers=auth_header(employee))
        assert res.status_code == 404
        body = res.get_json()
        assert body["error"] == "not_found"
        assert body["details"]["badge_application_id"] == stranger.id
        assert _reserved_ids(draft.id) == {reserved.id}

    def test_not_owner_forbidden(self, client, make_user, employee, draft, make_application, reserve, auth_header):
        badge = make_application(employee)
        reserve(draft, badge)
        res = client.delete(f"/api/promotions/{draft.id}/badges",
                            json={"badge_application_ids": [badge.id]}, headers=auth_header(make_user()))
        assert res.status_code == 403


class TestActiveReservationIndex:
    def test_second_unconsumed_reservation_rejected(
        self, employee, make_template, make_promotion, make_application, reserve,
    ):
        template = make_template()
        badge = make_application(employee)
        reserve(make_promotion(employee, template), badge)

        with pytest.raises(IntegrityError):
            reserve(make_promotion(employee, template), badge)
        db.session.rollback()

    def test_consumed_reservation_does_not_block(
        self, employee, make_template, make_promotion, make_application, reserve,
    ):
        template = make_template()
        badge = make_application(employee)
        reserve(make_promotion(employee, template, status="approved"), badge, consumed=True)
        pb = reserve(make_promotion(employee, template), badge)
        assert pb.id is not None
