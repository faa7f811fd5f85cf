"""Tests for logging context, error classes and the global error handlers."""

import uuid

from carledger.core.errors import (
    AggregationError,
    AppError,
    ErrorDetail,
    FactLookupError,
    NotFoundError,
    ReportError,
    ReportStoreError,
    ValidationError,
)
from carledger.core.logging import get_request_id, new_run_id, set_request_id
from carledger.core.sentry import capture_report_failure, filter_sensitive_data


class TestErrorClasses:
    """Test custom exception classes."""

    def test_validation_error_creates_correct_response(self):
        exc = ValidationError("month must be within 1..12", details={"month": 13})

        assert exc.code == "VALIDATION_ERROR"
        assert exc.status_code == 422
        assert exc.details == {"month": 13}

        response = exc.to_response()
        assert isinstance(response, ErrorDetail)
        assert response.code == "VALIDATION_ERROR"

    def test_not_found_error_includes_resource_context(self):
        exc = NotFoundError(resource="Sale", key="123")

        assert exc.code == "NOT_FOUND"
        assert exc.status_code == 404
        assert exc.message == "Sale 123 not found"
        assert exc.details == {"resource": "Sale", "key": "123"}

    def test_report_errors_are_app_errors(self):
        for exc, code in (
            (FactLookupError("database unavailable"), "FACT_LOOKUP_ERROR"),
            (AggregationError("malformed amount"), "AGGREGATION_ERROR"),
            (ReportStoreError("upsert failed"), "REPORT_STORE_ERROR"),
        ):
            assert isinstance(exc, ReportError)
            assert isinstance(exc, AppError)
            assert exc.code == code
            assert str(exc) == exc.message

    def test_fact_lookup_error_is_service_unavailable(self):
        assert FactLookupError("database unavailable").status_code == 503

    def test_empty_details_are_omitted(self):
        assert AggregationError("boom").to_response().details is None


class TestRequestIDContext:
    """Test request ID injection."""

    def test_set_and_get_request_id(self):
        set_request_id("test-request-123")

        assert get_request_id() == "test-request-123"

    def test_new_run_id_is_bound(self):
        run_id = new_run_id("cli")

        assert run_id.startswith("cli-")
        assert get_request_id() == run_id
        assert new_run_id("cli") != run_id


class TestSentryHelpers:
    def test_filter_drops_sql_extras_and_breadcrumbs(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "production")
        event = {
            "extra": {"period": "2025-07", "sql_statement": "SELECT * FROM sales"},
            "breadcrumbs": [{"message": "sqlalchemy.engine SELECT 1"}, {"message": "report.daily.generated"}],
        }

        filtered = filter_sensitive_data(event, {})

        assert filtered["extra"] == {"period": "2025-07"}
        assert filtered["breadcrumbs"] == [{"message": "report.daily.generated"}]

    def test_capture_is_noop_without_sentry(self):
        capture_report_failure("monthly_report", AggregationError("boom"), year=2025, month=7)


class TestErrorHandling:
    """Test global error handlers."""

    async def test_app_error_rendered_as_json(self, client):
        response = await client.get(f"/sales/{uuid.uuid4()}")

        assert response.status_code == 404
        data = response.json()
        assert data["code"] == "NOT_FOUND"
        assert data["details"]["resource"] == "Sale"

    async def test_unknown_route_uses_http_handler(self, client):
        response = await client.get("/nope")

        assert response.status_code == 404
        assert response.json() == {"detail": "Not Found"}

    async def test_request_id_header_in_response(self, client):
        """Test X-Request-ID header is echoed back."""
        response = await client.get("/health", headers={"X-Request-ID": "external-123"})

        assert response.headers.get("X-Request-ID") == "external-123"

    async def test_request_id_generated_when_missing(self, client):
        response = await client.get("/health")

        assert len(response.headers["X-Request-ID"]) > 0
