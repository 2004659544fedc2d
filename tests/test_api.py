"""
HTTP-level tests: authentication, role checks, tenant isolation and the
error mapping of the routers.
"""
from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy.exc import OperationalError

from models import LeaseStatus, LeaseType, UnitStatus, UserRole
from services.exceptions import ExternalServiceError


def _lease_body(tenant, unit, **overrides):
     body = {
          "tenant_id": tenant.id,
          "unit_id": unit.id,
          "lease_type": "COMMERCIAL",
          "start_date": "2025-01-01",
          "end_date": "2026-12-31",
          "monthly_rent": "2000.00",
     }
     body.update(overrides)
     return body


# =============================================================================
# Auth
# =============================================================================


class TestAuth:
     def test_login_returns_token_with_role(self, client, make_user):
          make_user(UserRole.ADMIN, email="boss@example.com", password="hunter22")

          response = client.post("/api/login", json={"email": "boss@example.com", "password": "hunter22"})

          assert response.status_code == 200
          assert response.json()["user"]["role"] == "ADMIN"
          assert response.json()["token"]

     def test_login_rejects_bad_password(self, client, make_user):
          make_user(email="t@example.com", password="right-one")
          response = client.post("/api/login", json={"email": "t@example.com", "password": "wrong"})
          assert response.status_code == 401
          assert response.json() == {"error": "Invalid credentials"}

     def test_missing_token_is_401(self, client):
          assert client.get("/api/leases").status_code == 401

     def test_garbage_token_is_401(self, client):
          response = client.get("/api/leases", headers={"Authorization": "Bearer not-a-jwt"})
          assert response.status_code == 401

     def test_tenant_cannot_create_lease(self, client, make_tenant, make_unit, tenant_headers):
          tenant = make_tenant()
          response = client.post("/api/leases", json=_lease_body(tenant, make_unit()), headers=tenant_headers(tenant))
          assert response.status_code == 403


# =============================================================================
# Leases
# =============================================================================


class TestLeaseRoutes:
     def test_create_lease(self, client, db, make_tenant, make_unit, admin_headers):
          unit = make_unit()
          response = client.post("/api/leases", json=_lease_body(make_tenant(), unit), headers=admin_headers)

          assert response.status_code == 201
          data = response.json()
          assert data["status"] == "ACTIVE"
          assert Decimal(data["monthly_rent"]) == Decimal("2000.00")
          assert data["unit_number"] == unit.unit_number
          db.refresh(unit)
          assert unit.status == UnitStatus.OCCUPIED

     def test_create_rejects_inverted_period(self, client, make_tenant, make_unit, admin_headers):
          body = _lease_body(make_tenant(), make_unit(), end_date="2024-01-01")
          assert client.post("/api/leases", json=body, headers=admin_headers).status_code == 422

     def test_update_rejects_monthly_rent(self, client, active_lease, admin_headers):
          response = client.put(
               f"/api/leases/{active_lease.id}", json={"monthly_rent": "9999.00"}, headers=admin_headers
          )
          assert response.status_code == 422
          assert active_lease.monthly_rent == Decimal("2000.00")

     def test_status_change_to_active_is_rejected(self, client, active_lease, admin_headers):
          response = client.post(
               f"/api/leases/{active_lease.id}/status", json={"status": "ACTIVE"}, headers=admin_headers
          )
          assert response.status_code == 422

     def test_terminate_then_expire_conflicts(self, client, active_lease, admin_headers):
          url = f"/api/leases/{active_lease.id}/status"
          assert client.post(url, json={"status": "TERMINATED"}, headers=admin_headers).status_code == 200
          response = client.post(url, json={"status": "EXPIRED"}, headers=admin_headers)
          assert response.status_code == 409
          assert "error" in response.json()

     def test_missing_lease_is_404_for_admin(self, client, admin_headers):
          response = client.get("/api/leases/4040", headers=admin_headers)
          assert response.status_code == 404
          assert response.json() == {"error": "Lease with ID 4040 not found"}

     def test_detail_includes_compliance(self, client, active_lease, admin_headers):
          response = client.get(f"/api/leases/{active_lease.id}", headers=admin_headers)
          assert response.status_code == 200
          compliance = response.json()["compliance"]
          assert compliance["banner"] == "REQUIRED"
          assert compliance["banner_label"] == "Insurance Required"

     def test_residential_detail_has_no_compliance(self, client, make_tenant, make_unit, make_lease, admin_headers):
          lease = make_lease(make_tenant(), make_unit(), lease_type=LeaseType.RESIDENTIAL)
          response = client.get(f"/api/leases/{lease.id}", headers=admin_headers)
          assert response.status_code == 200
          assert response.json()["compliance"] is None

     def test_expire_ended_sweep(self, client, db, make_tenant, make_unit, make_lease, admin_headers):
          ended = make_lease(make_tenant(), make_unit(), start_date=date(2023, 1, 1), end_date=date(2024, 1, 1))

          response = client.post("/api/leases/expire-ended", headers=admin_headers)

          assert response.status_code == 200
          assert response.json()["expired_lease_ids"] == [ended.id]
          db.refresh(ended)
          assert ended.status == LeaseStatus.EXPIRED

     def test_delete_lease_vacates_unit(self, client, db, active_lease, admin_headers):
          unit = active_lease.unit
          assert client.delete(f"/api/leases/{active_lease.id}", headers=admin_headers).status_code == 204
          db.refresh(unit)
          assert unit.status == UnitStatus.VACANT


class TestTenantIsolation:
     def test_tenant_sees_only_own_leases(self, client, make_tenant, make_unit, make_lease, tenant_headers):
          mine = make_lease(make_tenant(), make_unit())
          make_lease(make_tenant(first_name="Other"), make_unit())

          response = client.get("/api/leases", headers=tenant_headers(mine.tenant))

          assert [lease["id"] for lease in response.json()] == [mine.id]

     def test_foreign_and_missing_leases_look_the_same(self, client, make_tenant, make_unit, make_lease, tenant_headers):
          mine = make_lease(make_tenant(), make_unit())
          theirs = make_lease(make_tenant(first_name="Other"), make_unit())
          headers = tenant_headers(mine.tenant)

          foreign = client.get(f"/api/leases/{theirs.id}", headers=headers)
          missing = client.get("/api/leases/4040", headers=headers)

          assert foreign.status_code == missing.status_code == 403
          assert foreign.json() == missing.json()

     def test_my_lease(self, client, active_lease, tenant_headers):
          response = client.get("/api/leases/mine", headers=tenant_headers(active_lease.tenant))
          assert response.status_code == 200
          assert response.json()["id"] == active_lease.id

     def test_tenant_cannot_submit_insurance_for_foreign_lease(
          self, client, make_tenant, make_unit, make_lease, tenant_headers
     ):
          mine = make_lease(make_tenant(), make_unit())
          theirs = make_lease(make_tenant(first_name="Other"), make_unit())

          response = client.post(
               "/api/insurance",
               json={"lease_id": theirs.id, "effective_date": "2025-01-01", "expiration_date": "2026-01-01"},
               headers=tenant_headers(mine.tenant),
          )
          assert response.status_code == 403


# =============================================================================
# Escalations
# =============================================================================


class TestEscalationRoutes:
     def test_schedule_and_apply(self, client, active_lease, admin_headers):
          created = client.post(
               "/api/escalations",
               json={
                    "lease_id": active_lease.id,
                    "effective_date": str(date.today() + timedelta(days=30)),
                    "increase_type": "PERCENTAGE",
                    "increase_value": "5",
               },
               headers=admin_headers,
          )
          assert created.status_code == 201
          assert Decimal(created.json()["new_monthly_rent"]) == Decimal("2100.00")

          escalation_id = created.json()["id"]
          applied = client.post(f"/api/escalations/{escalation_id}/apply", headers=admin_headers)
          assert applied.status_code == 200
          assert applied.json()["applied"] is True

          again = client.post(f"/api/escalations/{escalation_id}/apply", headers=admin_headers)
          assert again.status_code == 409

          lease = client.get(f"/api/leases/{active_lease.id}", headers=admin_headers).json()
          assert Decimal(lease["monthly_rent"]) == Decimal("2100.00")

     def test_cpi_requires_new_rent(self, client, active_lease, admin_headers):
          response = client.post(
               "/api/escalations",
               json={"lease_id": active_lease.id, "effective_date": "2026-01-01", "increase_type": "CPI"},
               headers=admin_headers,
          )
          assert response.status_code == 422

     def test_tenant_cannot_apply(self, client, active_lease, admin_headers, tenant_headers):
          created = client.post(
               "/api/escalations",
               json={
                    "lease_id": active_lease.id,
                    "effective_date": "2026-01-01",
                    "increase_type": "FIXED_AMOUNT",
                    "increase_value": "150",
               },
               headers=admin_headers,
          ).json()
          response = client.post(
               f"/api/escalations/{created['id']}/apply", headers=tenant_headers(active_lease.tenant)
          )
          assert response.status_code == 403


# =============================================================================
# Insurance
# =============================================================================


class TestInsuranceRoutes:
     def test_tenant_submits_admin_verifies(self, client, active_lease, admin_headers, tenant_headers):
          submitted = client.post(
               "/api/insurance",
               json={
                    "lease_id": active_lease.id,
                    "carrier": "Acme Mutual",
                    "effective_date": str(date.today() - timedelta(days=10)),
                    "expiration_date": str(date.today() + timedelta(days=365)),
               },
               headers=tenant_headers(active_lease.tenant),
          )
          assert submitted.status_code == 201
          record = submitted.json()
          assert record["verified"] is False
          assert record["beneficiary_name"] == "Himalayan Holdings Property LLC"

          forbidden = client.post(f"/api/insurance/{record['id']}/verify", headers=tenant_headers(active_lease.tenant))
          assert forbidden.status_code == 403

          verified = client.post(f"/api/insurance/{record['id']}/verify", headers=admin_headers)
          assert verified.json()["verified"] is True

          compliance = client.get(f"/api/leases/{active_lease.id}/compliance", headers=admin_headers).json()
          assert compliance["is_compliant"] is True
          assert compliance["banner_label"] == "Insurance Compliant"

     def test_tenant_cannot_extend_a_verified_certificate(self, client, active_lease, admin_headers, tenant_headers):
          headers = tenant_headers(active_lease.tenant)
          record = client.post(
               "/api/insurance",
               json={
                    "lease_id": active_lease.id,
                    "effective_date": str(date.today() - timedelta(days=400)),
                    "expiration_date": str(date.today() - timedelta(days=30)),
               },
               headers=headers,
          ).json()
          client.post(f"/api/insurance/{record['id']}/verify", headers=admin_headers)
          compliance_url = f"/api/leases/{active_lease.id}/compliance"
          assert client.get(compliance_url, headers=headers).json()["banner_label"] == "Insurance Expired"

          edited = client.patch(
               f"/api/insurance/{record['id']}",
               json={"expiration_date": str(date.today() + timedelta(days=3650)), "carrier": "Nobody"},
               headers=headers,
          )

          assert edited.status_code == 200
          assert edited.json()["verified"] is False
          assert edited.json()["verified_at"] is None
          compliance = client.get(compliance_url, headers=headers).json()
          assert compliance["is_compliant"] is False
          assert compliance["banner_label"] == "Insurance Required"

     def test_admin_edit_keeps_verification(self, client, active_lease, admin_headers):
          record = client.post(
               "/api/insurance",
               json={"lease_id": active_lease.id, "effective_date": "2025-01-01", "expiration_date": "2027-01-01"},
               headers=admin_headers,
          ).json()
          client.post(f"/api/insurance/{record['id']}/verify", headers=admin_headers)

          edited = client.patch(
               f"/api/insurance/{record['id']}", json={"policy_number": "GL-9"}, headers=admin_headers
          )

          assert edited.json()["verified"] is True

     def test_beneficiary_in_body_is_rejected_on_edit(self, client, active_lease, admin_headers):
          record = client.post(
               "/api/insurance",
               json={"lease_id": active_lease.id, "effective_date": "2025-01-01", "expiration_date": "2026-01-01"},
               headers=admin_headers,
          ).json()
          response = client.patch(
               f"/api/insurance/{record['id']}", json={"beneficiary_name": "Me"}, headers=admin_headers
          )
          assert response.status_code == 422


# =============================================================================
# Payments
# =============================================================================


class TestPaymentRoutes:
     def test_payment_is_synced(self, client, active_lease, admin_headers, accounting):
          response = client.post(
               "/api/payments",
               json={"lease_id": active_lease.id, "amount": "2000.00", "date": "2025-02-01", "method": "ACH"},
               headers=admin_headers,
          )
          assert response.status_code == 201
          assert response.json()["accounting_receipt_id"] == "100"
          assert len(accounting.receipts) == 1

     def test_sync_failure_keeps_payment(self, client, active_lease, admin_headers, accounting):
          accounting.error = ExternalServiceError("QuickBooks API error")

          response = client.post(
               "/api/payments",
               json={"lease_id": active_lease.id, "amount": "2000.00", "date": "2025-02-01"},
               headers=admin_headers,
          )

          assert response.status_code == 201
          assert response.json()["accounting_receipt_id"] is None
          listed = client.get(f"/api/payments?lease_id={active_lease.id}", headers=admin_headers).json()
          assert [p["id"] for p in listed] == [response.json()["id"]]

     def test_failed_commit_after_sync_keeps_payment(self, client, db, active_lease, admin_headers, monkeypatch):
          real_commit = db.commit
          calls = []

          def commit():
               calls.append(1)
               if len(calls) == 2:
                    raise OperationalError("COMMIT", {}, Exception("database is locked"))
               real_commit()

          monkeypatch.setattr(db, "commit", commit)

          response = client.post(
               "/api/payments",
               json={"lease_id": active_lease.id, "amount": "2000.00", "date": "2025-02-01"},
               headers=admin_headers,
          )

          assert response.status_code == 201
          assert response.json()["accounting_receipt_id"] == "100"
          listed = client.get(f"/api/payments?lease_id={active_lease.id}", headers=admin_headers).json()
          assert [p["id"] for p in listed] == [response.json()["id"]]


# =============================================================================
# Units, accounting and documents
# =============================================================================


class TestUnitRoutes:
     def test_occupied_unit_status_is_locked(self, client, active_lease, admin_headers):
          response = client.patch(
               f"/api/units/{active_lease.unit_id}/status", json={"status": "MAINTENANCE"}, headers=admin_headers
          )
          assert response.status_code == 409

     def test_vacant_unit_to_maintenance(self, client, make_unit, admin_headers):
          unit = make_unit()
          response = client.patch(f"/api/units/{unit.id}/status", json={"status": "MAINTENANCE"}, headers=admin_headers)
          assert response.status_code == 200
          assert response.json()["status"] == "MAINTENANCE"


class TestAccountingRoutes:
     def test_status_when_not_connected(self, client, admin_headers):
          response = client.get("/api/accounting/status", headers=admin_headers)
          assert response.json() == {"connected": False, "company_name": None}

     def test_callback_with_bad_state_redirects_with_error(self, client):
          response = client.get(
               "/api/accounting/callback",
               params={"code": "abc", "realmId": "1", "state": "forged"},
               follow_redirects=False,
          )
          assert response.status_code == 302
          assert response.headers["location"].endswith("/admin/accounting?error=connection_failed")

     def test_state_token_is_not_an_access_token(self, client, admin):
          from auth import create_oauth_state

          state = create_oauth_state({"id": admin.id, "role": "ADMIN"})
          response = client.get("/api/leases", headers={"Authorization": f"Bearer {state}"})
          assert response.status_code == 401


class TestDocumentRoutes:
     def test_upload_sets_lease_document_url(self, client, active_lease, admin_headers, monkeypatch):
          uploaded = []

          def fake_upload(file, container, prefix):
               uploaded.append((file.filename, container, prefix))
               return f"https://acct.blob.core.windows.net/{container}/{prefix}/signed.pdf"

          monkeypatch.setattr("azure_blob.upload_to_blob", fake_upload)

          response = client.post(
               f"/api/documents/leases/{active_lease.id}",
               files={"document": ("signed.pdf", b"%PDF-1.4", "application/pdf")},
               headers=admin_headers,
          )

          assert response.status_code == 200
          assert response.json()["document_url"].endswith(f"leases/{active_lease.id}/signed.pdf")
          assert uploaded == [("signed.pdf", "documents", f"leases/{active_lease.id}")]

     def test_replacing_a_document_deletes_the_old_blob(self, client, db, active_lease, admin_headers, monkeypatch):
          old_url = f"https://acct.blob.core.windows.net/documents/leases/{active_lease.id}/old.pdf"
          active_lease.document_url = old_url
          db.commit()
          deleted = []
          monkeypatch.setattr(
               "azure_blob.upload_to_blob",
               lambda file, container, prefix: f"https://acct.blob.core.windows.net/{container}/{prefix}/new.pdf",
          )
          monkeypatch.setattr("azure_blob.delete_from_blob", deleted.append)

          response = client.post(
               f"/api/documents/leases/{active_lease.id}",
               files={"document": ("new.pdf", b"%PDF-1.4", "application/pdf")},
               headers=admin_headers,
          )

          assert response.status_code == 200
          assert deleted == [old_url]

     def test_failed_blob_delete_keeps_the_upload(self, client, make_tenant, make_unit, make_lease, tenant_headers, monkeypatch):
          tenant = make_tenant()
          lease = make_lease(tenant, make_unit())
          record = client.post(
               "/api/insurance",
               json={"lease_id": lease.id, "effective_date": "2025-01-01", "expiration_date": "2026-01-01"},
               headers=tenant_headers(tenant),
          ).json()

          def fail_delete(url):
               raise ExternalServiceError("Document delete failed")

          urls = iter(["https://acct.blob.core.windows.net/documents/a.pdf", "https://acct.blob.core.windows.net/documents/b.pdf"])
          monkeypatch.setattr("azure_blob.upload_to_blob", lambda file, container, prefix: next(urls))
          monkeypatch.setattr("azure_blob.delete_from_blob", fail_delete)

          for name in ("a.pdf", "b.pdf"):
               response = client.post(
                    f"/api/documents/insurance/{record['id']}",
                    files={"document": (name, b"%PDF-1.4", "application/pdf")},
                    headers=tenant_headers(tenant),
               )
               assert response.status_code == 200
          assert response.json()["document_url"].endswith("b.pdf")

     def test_tenant_swapping_certificate_clears_verification(
          self, client, active_lease, admin_headers, tenant_headers, monkeypatch
     ):
          headers = tenant_headers(active_lease.tenant)
          record = client.post(
               "/api/insurance",
               json={"lease_id": active_lease.id, "effective_date": "2025-01-01", "expiration_date": "2027-01-01"},
               headers=headers,
          ).json()
          client.post(f"/api/insurance/{record['id']}/verify", headers=admin_headers)
          monkeypatch.setattr(
               "azure_blob.upload_to_blob",
               lambda file, container, prefix: f"https://acct.blob.core.windows.net/{container}/{prefix}/other.pdf",
          )

          response = client.post(
               f"/api/documents/insurance/{record['id']}",
               files={"document": ("other.pdf", b"%PDF-1.4", "application/pdf")},
               headers=headers,
          )

          assert response.status_code == 200
          assert response.json()["verified"] is False
