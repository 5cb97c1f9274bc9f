"""Tests for auth, tenancy and business management."""

from backoffice.models import BusinessSettings, BusinessStaff, SystemLog, User
from backoffice.security_utils import decrypt_secret

from .conftest import make_token


class TestAuthentication:
    """Bearer token handling and user provisioning."""

    def test_invalid_token_is_rejected(self, client, business):
        response = client.get("/products", headers={"Authorization": "Bearer not.a.jwt"})
        assert response.status_code == 401

    def test_expired_token_is_flagged(self, client, owner, business):
        token = make_token(owner.auth_uid, owner.email, expires_in=-60)
        response = client.get("/products", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.headers.get("X-Token-Expired") == "true"

    def test_first_request_creates_user(self, client, db):
        token = make_token("new-uid", "New.Person@Example.com")
        response = client.get("/products", headers={"Authorization": f"Bearer {token}"})

        # No membership yet, but the user now exists
        assert response.status_code == 403
        user = db.query(User).filter(User.auth_uid == "new-uid").first()
        assert user is not None
        assert user.email == "new.person@example.com"

    def test_existing_email_is_linked_to_new_uid(self, client, db, owner, business):
        token = make_token("other-provider-uid", owner.email)
        response = client.get("/products", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        db.refresh(owner)
        assert owner.auth_uid == "other-provider-uid"

    def test_inactive_membership_has_no_business_access(self, client, db, owner, business, auth_headers):
        membership = db.query(BusinessStaff).filter(BusinessStaff.user_id == owner.id).first()
        membership.status = "inactive"
        db.commit()

        response = client.get("/products", headers=auth_headers)
        assert response.status_code == 403


class TestAdmin:
    """Platform admin endpoints."""

    def test_non_admin_is_forbidden(self, client, auth_headers):
        response = client.get("/admin/businesses", headers=auth_headers)
        assert response.status_code == 403

    def test_create_business_attaches_owner_and_logs(self, client, db, admin_headers, owner):
        response = client.post(
            "/admin/businesses",
            json={"name": "Bakery", "owner_email": owner.email},
            headers=admin_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Bakery"
        assert data["status"] == "active"
        assert data["owner_id"] == owner.id

        membership = (
            db.query(BusinessStaff)
            .filter(BusinessStaff.business_id == data["id"], BusinessStaff.user_id == owner.id)
            .first()
        )
        assert membership.role == "admin"
        log = db.query(SystemLog).filter(SystemLog.action == "business_created").first()
        assert log.business_id == data["id"]

    def test_toggle_status_records_transition(self, client, db, admin_headers, business):
        response = client.post(f"/admin/businesses/{business.id}/toggle-status", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["status"] == "inactive"
        log = db.query(SystemLog).filter(SystemLog.action == "business_status_changed").first()
        assert log.details == {"from": "active", "to": "inactive"}

    def test_blocked_business_denies_staff(self, client, admin_headers, auth_headers, business):
        client.post(f"/admin/businesses/{business.id}/toggle-status", headers=admin_headers)

        blocked = client.get("/customers", headers=auth_headers)
        assert blocked.status_code == 403

        client.post(f"/admin/businesses/{business.id}/toggle-status", headers=admin_headers)
        assert client.get("/customers", headers=auth_headers).status_code == 200

    def test_toggle_unknown_business_is_404(self, client, admin_headers):
        response = client.post("/admin/businesses/missing/toggle-status", headers=admin_headers)
        assert response.status_code == 404

    def test_overview_counts(self, client, admin_headers, business):
        response = client.get("/admin/overview", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total_businesses"] == 1
        assert data["active_businesses"] == 1
        assert data["total_staff"] == 1

    def test_admin_can_act_on_any_business(self, client, admin_headers, business):
        response = client.get(f"/products?business_id={business.id}", headers=admin_headers)
        assert response.status_code == 200


class TestStaff:
    """Dashboard staff memberships."""

    def test_add_staff_requires_existing_user(self, client, auth_headers):
        response = client.post("/business/staff", json={"email": "ghost@example.com"}, headers=auth_headers)
        assert response.status_code == 404

    def test_add_deactivate_and_reactivate_staff(self, client, db, auth_headers):
        db.add(User(auth_uid="clerk-uid", email="clerk@example.com"))
        db.commit()

        created = client.post("/business/staff", json={"email": "clerk@example.com"}, headers=auth_headers)
        assert created.status_code == 200
        staff_id = created.json()["id"]

        duplicate = client.post("/business/staff", json={"email": "clerk@example.com"}, headers=auth_headers)
        assert duplicate.status_code == 400

        deactivated = client.post(f"/business/staff/{staff_id}/deactivate", headers=auth_headers)
        assert deactivated.status_code == 200

        reactivated = client.post(
            "/business/staff", json={"email": "clerk@example.com", "role": "admin"}, headers=auth_headers
        )
        assert reactivated.status_code == 200
        assert reactivated.json()["id"] == staff_id
        assert reactivated.json()["status"] == "active"
        assert reactivated.json()["role"] == "admin"

    def test_team_members(self, client, auth_headers):
        created = client.post("/business/team", json={"name": "Yossi"}, headers=auth_headers)
        assert created.status_code == 200

        listed = client.get("/business/team", headers=auth_headers)
        assert [m["name"] for m in listed.json()] == ["Yossi"]


class TestSettings:
    """Integration settings with the encrypted CRM token."""

    def test_token_is_encrypted_and_masked(self, client, db, auth_headers, business):
        response = client.put(
            "/business/settings",
            json={"api_token": "pit-1234567890", "location_id": "loc-1", "cardcom_terminal": "1000"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["has_api_token"] is True
        assert data["api_token"].endswith("7890")
        assert "pit-" not in data["api_token"]

        stored = db.query(BusinessSettings).filter(BusinessSettings.business_id == business.id).first()
        assert stored.api_token != "pit-1234567890"
        assert decrypt_secret(stored.api_token) == "pit-1234567890"

    def test_partial_update_keeps_other_fields(self, client, auth_headers):
        client.put("/business/settings", json={"cardcom_terminal": "1000"}, headers=auth_headers)
        response = client.put("/business/settings", json={"cardcom_api_name": "api"}, headers=auth_headers)

        assert response.json()["cardcom_terminal"] == "1000"
        assert response.json()["cardcom_api_name"] == "api"

    def test_terminal_must_be_numeric(self, client, auth_headers):
        response = client.put("/business/settings", json={"cardcom_terminal": "abc"}, headers=auth_headers)
        assert response.status_code == 422
