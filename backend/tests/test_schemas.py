"""
Tests for Pydantic schemas.
Validates request/response model serialization and validation.
"""
import pytest
from datetime import datetime, timedelta
from pydantic import ValidationError

from app.models.credit_usage import CreditUsage
from app.schemas.analysis import AnalysisRequest, AnalysisResponse
from app.schemas.credits import (
    CreditCheckResponse,
    CreditUsageResponse,
    GrantCreditsRequest,
)


class TestAnalysisSchemas:
    """Tests for analysis request schemas."""

    def test_request_defaults_to_text_analysis(self):
        request = AnalysisRequest(content="My essay", assignment_name="Essay 1")

        assert request.operation == "text_analysis"
        assert request.assignment_id is None

    def test_request_with_operation(self):
        request = AnalysisRequest(
            content="Scan", assignment_name="Worksheet", operation="image_ocr", assignment_id="ws-1"
        )

        assert request.operation == "image_ocr"
        assert request.assignment_id == "ws-1"

    def test_request_unknown_operation(self):
        with pytest.raises(ValidationError):
            AnalysisRequest(content="x", assignment_name="Essay", operation="translation")

    @pytest.mark.parametrize("field", ["content", "assignment_name"])
    def test_request_empty_fields(self, field):
        data = {"content": "My essay", "assignment_name": "Essay 1", field: ""}

        with pytest.raises(ValidationError):
            AnalysisRequest(**data)

    def test_request_assignment_id_length(self):
        with pytest.raises(ValidationError):
            AnalysisRequest(content="x", assignment_name="Essay", assignment_id="a" * 37)

        assert AnalysisRequest(content="x", assignment_name="E" * 500).assignment_name == "E" * 500

    def test_response_valid(self):
        response = AnalysisResponse(
            result={"score": 90},
            credits_required=3,
            credits_charged=False,
            remaining_credits=0,
        )

        assert response.credits_charged is False
        assert response.result["score"] == 90


class TestCreditSchemas:
    """Tests for credit ledger schemas."""

    def test_grant_request_defaults(self):
        request = GrantCreditsRequest(credits=10)

        assert request.subscription_type == "free"
        assert request.expiry_days == 30

    def test_grant_request_negative(self):
        with pytest.raises(ValidationError):
            GrantCreditsRequest(credits=-1)

    def test_grant_request_zero_allowed(self):
        assert GrantCreditsRequest(credits=0).credits == 0

    def test_usage_response_from_model(self):
        now = datetime(2025, 1, 10, 9, 30)
        usage = CreditUsage(
            id="usage-1",
            user_id="user-1",
            batch_id="batch-1",
            credits_used=3,
            assignment_name="Lab report",
            created_at=now,
        )

        response = CreditUsageResponse.model_validate(usage)

        assert response.batch_id == "batch-1"
        assert response.credits_used == 3
        assert response.assignment_id is None
        assert response.created_at == now

    def test_check_response_deficit_optional(self):
        response = CreditCheckResponse(
            has_enough_credits=True,
            current_balance=5,
            required_credits=3,
        )

        assert response.deficit is None
