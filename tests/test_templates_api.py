"""
Promotion template API tests — /api/promotion-templates.
"""

import uuid

import pytest

from badger.models.audit import AuditLog


def _payload(**overrides):
    data = {
        "name": "Senior Engineer",
        "path": "technical",
        "from_level": "J2",
        "to_level": "S1",
        "rules": [
            {"category": "technical", "level": "gold", "count": 2},
            {"category": "any", "level": "silver", "count": 1},
        ],
    }
    data.update(overrides)
    return data


class TestCreateTemplate:
    def test_admin_creates_template(self, client, admin, auth_header):
        res = client.post("/api/promotion-templates", json=_payload(), headers=auth_header(admin))
        assert res.status_code == 201
        body = res.get_json()
        assert body["is_active"] is True
        assert body["created_by"] == admin.id
        assert body["rules"][1] == {"category": "any", "level": "silver", "count": 1}
        assert AuditLog.query.filter_by(event_type="promotion_template.created").count() == 1

    def test_employee_forbidden(self, client, employee, auth_header):
        res = client.post("/api/promotion-templates", json=_payload(), headers=auth_header(employee))
        assert res.status_code == 403

    def test_duplicate_transition_conflict(self, client, admin, make_template, auth_header):
        make_template(path="technical", from_level="J2", to_level="S1")
        res = client.post("/api/promotion-templates", json=_payload(), headers=auth_header(admin))
        assert res.status_code == 409
        assert res.get_json()["error"] == "conflict"

    @pytest.mark.parametrize("overrides", [
        {"path": "sales"},
        {"name": "   "},
        {"from_level": ""},
        {"rules": []},
        {"rules": [{"category": "technical", "level": "gold", "count": 0}]},
        {"rules": [{"category": "cooking", "level": "gold", "count": 1}]},
    ])
    def test_invalid_payload(self, client, admin, auth_header, overrides):
        res = client.post("/api/promotion-templates", json=_payload(**overrides), headers=auth_header(admin))
        assert res.status_code == 400
        assert res.get_json()["error"] == "validation_error"


class TestReadTemplates:
    def test_list_defaults_to_active(self, client, employee, make_template, auth_header):
        active = make_template()
        make_template(is_active=False)

        body = client.get("/api/promotion-templates", headers=auth_header(employee)).get_json()
        assert [t["id"] for t in body["data"]] == [active.id]

        body = client.get("/api/promotion-templates?is_active=all", headers=auth_header(employee)).get_json()
        assert body["pagination"]["total"] == 2

    def test_list_filters(self, client, employee, make_template, auth_header):
        make_template(path="technical", from_level="J1", to_level="J2")
        make_template(path="management", from_level="M1", to_level="M2")

        body = client.get("/api/promotion-templates?path=management", headers=auth_header(employee)).get_json()
        assert [t["from_level"] for t in body["data"]] == ["M1"]
        body = client.get("/api/promotion-templates?from_level=J1", headers=auth_header(employee)).get_json()
        assert [t["path"] for t in body["data"]] == ["technical"]

    def test_bad_is_active(self, client, employee, auth_header):
        res = client.get("/api/promotion-templates?is_active=maybe", headers=auth_header(employee))
        assert res.status_code == 400

    def test_get_one(self, client, employee, make_template, auth_header):
        template = make_template()
        res = client.get(f"/api/promotion-templates/{template.id}", headers=auth_header(employee))
        assert res.status_code == 200
        assert res.get_json()["name"] == template.name

    def test_get_missing(self, client, employee, auth_header):
        res = client.get(f"/api/promotion-templates/{uuid.uuid4()}", headers=auth_header(employee))
        assert res.status_code == 404


class TestUpdateTemplate:
    def test_update_rules(self, client, admin, make_template, auth_header):
        template = make_template()
        res = client.put(
            f"/api/promotion-templates/{template.id}",
            json={"rules": [{"category": "softskilled", "level": "bronze", "count": 3}]},
            headers=auth_header(admin),
        )
        assert res.status_code == 200
        assert res.get_json()["rules"] == [{"category": "softskilled", "level": "bronze", "count": 3}]
        audit = AuditLog.query.filter_by(event_type="promotion_template.updated").one()
        assert audit.payload["before"]["rules"] == [{"category": "technical", "level": "gold", "count": 1}]

    def test_empty_update_rejected(self, client, admin, make_template, auth_header):
        template = make_template()
        res = client.put(f"/api/promotion-templates/{template.id}", json={}, headers=auth_header(admin))
        assert res.status_code == 400

    def test_deactivate(self, client, admin, make_template, auth_header):
        template = make_template()
        res = client.post(f"/api/promotion-templates/{template.id}/deactivate", headers=auth_header(admin))
        assert res.status_code == 200
        assert res.get_json()["is_active"] is False

        res = client.post(f"/api/promotion-templates/{template.id}/deactivate", headers=auth_header(admin))
        assert res.status_code == 409
        assert res.get_json()["current_status"] == "inactive"
