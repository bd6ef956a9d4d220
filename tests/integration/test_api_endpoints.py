"""API endpoint integration tests.

Tests the FastAPI endpoints for leave, comp-off, payroll and employee
operations, including the mapping of engine errors to status codes.
"""

from decimal import Decimal

from httpx import AsyncClient

from hr_payroll_engine.api.app import status_code_for
from hr_payroll_engine.errors import (
    ConfigurationError,
    InsufficientBalanceError,
    NotFoundError,
    ValidationError,
)
from hr_payroll_engine.services.state_machine import InvalidTransitionError


class TestHealthEndpoints:
    """Test health check endpoints."""

    async def test_health_check(self, client: AsyncClient):
        """Health endpoint should return 200."""
        response = await client.get("/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "healthy"

    async def test_liveness_check(self, client: AsyncClient):
        response = await client.get("/live")
        assert response.status_code == 200
        assert response.json()["status"] == "alive"


class TestLeaveEndpoints:
    """Test the leave workflow over HTTP."""

    async def _init_balances(self, client: AsyncClient) -> None:
        response = await client.post("/api/v1/leaves/balances/initialize", json={"year": 2026})
        assert response.status_code == 201
        assert response.json()["created"] == 5

    async def test_apply_and_approve(self, client: AsyncClient, seeded):
        await self._init_balances(client)

        response = await client.post(
            "/api/v1/leaves/applications",
            json={
                "employee_id": seeded.employee_id,
                "leave_type_id": seeded.leave_type_ids["CL"],
                "from_date": "2026-03-10",
                "to_date": "2026-03-12",
                "reason": "Family trip",
            },
        )
        assert response.status_code == 201
        application = response.json()
        assert application["status"] == "PENDING"
        assert Decimal(application["total_days"]) == Decimal("3")

        response = await client.post(
            f"/api/v1/leaves/applications/{application['id']}/decision",
            json={"status": "APPROVED"},
        )
        assert response.status_code == 200
        assert response.json()["status"] == "APPROVED"

        response = await client.get(
            f"/api/v1/leaves/balances/{seeded.employee_id}", params={"year": 2026}
        )
        assert response.status_code == 200
        cl = next(
            b for b in response.json() if b["leave_type_id"] == seeded.leave_type_ids["CL"]
        )
        assert Decimal(cl["used"]) == Decimal("3")
        assert Decimal(cl["closing"]) == Decimal("9")

        response = await client.get(f"/api/v1/leaves/history/{seeded.employee_id}")
        assert response.status_code == 200
        assert response.json()[-1]["transaction_type"] == "DEBIT"

    async def test_overlap_is_conflict(self, client: AsyncClient, seeded):
        await self._init_balances(client)
        payload = {
            "employee_id": seeded.employee_id,
            "leave_type_id": seeded.leave_type_ids["CL"],
            "from_date": "2026-03-10",
            "to_date": "2026-03-12",
        }
        assert (await client.post("/api/v1/leaves/applications", json=payload)).status_code == 201

        response = await client.post(
            "/api/v1/leaves/applications",
            json={**payload, "from_date": "2026-03-12", "to_date": "2026-03-14"},
        )

        assert response.status_code == 409
        body = response.json()
        assert body["code"] == "CONFLICT"
        assert body["context"]["conflicting_from_date"] == "2026-03-10"

    async def test_weekend_only_is_bad_request(self, client: AsyncClient, seeded):
        response = await client.post(
            "/api/v1/leaves/applications",
            json={
                "employee_id": seeded.employee_id,
                "leave_type_id": seeded.leave_type_ids["CL"],
                "from_date": "2026-03-07",
                "to_date": "2026-03-08",
            },
        )

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    async def test_insufficient_balance_is_unprocessable(self, client: AsyncClient, seeded):
        response = await client.post(
            "/api/v1/leaves/applications",
            json={
                "employee_id": seeded.employee_id,
                "leave_type_id": seeded.leave_type_ids["SL"],
                "from_date": "2026-03-09",
                "to_date": "2026-03-13",
            },
        )

        assert response.status_code == 422
        body = response.json()
        assert body["code"] == "INSUFFICIENT_BALANCE"
        assert Decimal(body["context"]["required"]) == Decimal("5")
        assert Decimal(body["context"]["available"]) == Decimal("0")

    async def test_get_application(self, client: AsyncClient, seeded):
        await self._init_balances(client)
        created = await client.post(
            "/api/v1/leaves/applications",
            json={
                "employee_id": seeded.employee_id,
                "leave_type_id": seeded.leave_type_ids["CL"],
                "from_date": "2026-03-10",
                "to_date": "2026-03-10",
            },
        )
        application_id = created.json()["id"]

        response = await client.get(f"/api/v1/leaves/applications/{application_id}")

        assert response.status_code == 200
        assert response.json()["from_date"] == "2026-03-10"

    async def test_decision_on_unknown_application(self, client: AsyncClient, seeded):
        response = await client.post(
            "/api/v1/leaves/applications/9999/decision", json={"status": "APPROVED"}
        )

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"


class TestCompOffEndpoints:
    """Test comp-off request and approval."""

    async def test_request_and_approve(self, client: AsyncClient, seeded):
        response = await client.post(
            "/api/v1/comp-offs",
            json={
                "employee_id": seeded.employee_id,
                "worked_date": "2026-03-14",
                "reason": "Release weekend",
            },
        )
        assert response.status_code == 201
        record = response.json()
        assert record["status"] == "PENDING"

        response = await client.post(f"/api/v1/comp-offs/{record['id']}/approve")
        assert response.status_code == 200
        assert response.json()["status"] == "ACTIVE"

        response = await client.post(f"/api/v1/comp-offs/{record['id']}/approve")
        assert response.status_code == 409


class TestPayrollEndpoints:
    """Test generation and record updates."""

    async def test_generate_is_idempotent(self, client: AsyncClient, seeded):
        first = await client.post("/api/v1/payroll/generate", json={"month": 3, "year": 2026})
        second = await client.post("/api/v1/payroll/generate", json={"month": 3, "year": 2026})

        assert first.status_code == 200
        assert first.json()["created"] == 1
        assert second.json()["created"] == 0
        assert second.json()["existing"] == 1

    async def test_invalid_month(self, client: AsyncClient, seeded):
        response = await client.post("/api/v1/payroll/generate", json={"month": 13, "year": 2026})

        assert response.status_code == 400

    async def test_update_then_publish(self, client: AsyncClient, seeded):
        await client.post("/api/v1/payroll/generate", json={"month": 3, "year": 2026})
        records = (await client.get("/api/v1/payroll/records", params={"month": 3})).json()
        record_id = records[0]["id"]

        response = await client.patch(
            f"/api/v1/payroll/records/{record_id}",
            json={"lop_days": "2", "other_allowances": "1000", "other_deductions": "500"},
        )
        assert response.status_code == 200
        assert Decimal(response.json()["net_salary"]) == Decimal("42860.00")

        response = await client.patch(
            f"/api/v1/payroll/records/{record_id}", json={"status": "PROCESSED"}
        )
        assert response.status_code == 200
        assert response.json()["processed_at"] is not None

        response = await client.patch(
            f"/api/v1/payroll/records/{record_id}", json={"lop_days": "1"}
        )
        assert response.status_code == 409

        response = await client.patch(
            f"/api/v1/payroll/records/{record_id}", json={"status": "DRAFT"}
        )
        assert response.status_code == 409
        assert response.json()["code"] == "INVALID_TRANSITION"


class TestEmployeeEndpoints:
    """Test employee codes, increments and separation."""

    async def test_next_code(self, client: AsyncClient):
        first = await client.post("/api/v1/employees/next-code")
        second = await client.post("/api/v1/employees/next-code")

        assert first.json()["employee_code"] == "EMP001"
        assert second.json()["employee_code"] == "EMP002"

    async def test_increment_and_history(self, client: AsyncClient, seeded):
        response = await client.post(
            f"/api/v1/employees/{seeded.employee_id}/increment",
            json={
                "components": {"basic_salary": "396000", "hra": "144000"},
                "effective_from": "2026-04-01",
                "remarks": "Annual Appraisal",
                "increment_percentage": "10",
            },
        )
        assert response.status_code == 200
        assert Decimal(response.json()["ctc_annual"]) == Decimal("540000.00")

        response = await client.get(f"/api/v1/employees/{seeded.employee_id}/salary-history")
        history = response.json()
        assert len(history) == 1
        assert history[0]["effective_to"] == "2026-04-01"
        assert history[0]["reason"] == "Annual Appraisal - 10% Hike"

    async def test_current_salary_structure(self, client: AsyncClient, seeded):
        response = await client.get(f"/api/v1/employees/{seeded.employee_id}/salary")

        assert response.status_code == 200
        assert Decimal(response.json()["basic_salary"]) == Decimal("360000")

    async def test_separate(self, client: AsyncClient, seeded):
        response = await client.post(
            f"/api/v1/employees/{seeded.employee_id}/separate",
            json={"status": "RESIGNED", "date_of_leaving": "2026-06-30"},
        )

        assert response.status_code == 200
        assert response.json()["status"] == "RESIGNED"

    async def test_unknown_employee(self, client: AsyncClient):
        response = await client.get("/api/v1/employees/404")

        assert response.status_code == 404

    async def test_list_by_status(self, client: AsyncClient, seeded):
        response = await client.get("/api/v1/employees", params={"status": "PUBLISHED"})
        assert response.status_code == 200
        assert [e["id"] for e in response.json()] == [seeded.employee_id]

        response = await client.get("/api/v1/employees", params={"status": "RESIGNED"})
        assert response.json() == []


class TestErrorStatusCodes:
    """Test the engine error to HTTP status mapping."""

    def test_insufficient_balance_is_422(self):
        exc = InsufficientBalanceError(required=Decimal("3"), available=Decimal("1"))
        assert status_code_for(exc) == 422

    def test_invalid_transition_maps_as_conflict(self):
        assert status_code_for(InvalidTransitionError("PROCESSED", "DRAFT")) == 409

    def test_other_engine_errors(self):
        assert status_code_for(ValidationError("bad month")) == 400
        assert status_code_for(NotFoundError("Employee", 1)) == 404
        assert status_code_for(ConfigurationError("EL missing")) == 500
