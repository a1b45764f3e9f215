"""
Pydantic schemas for the grading analysis endpoint.
"""
from pydantic import BaseModel, Field
from typing import Any, Dict, Literal, Optional


OperationKind = Literal["text_analysis", "image_analysis", "image_ocr", "detailed_feedback"]


class AnalysisRequest(BaseModel):
    """Schema for requesting a graded analysis."""
    content: str = Field(..., min_length=1, description="Submission text to grade")
    assignment_name: str = Field(..., min_length=1, description="Assignment name, stored on the usage record")
    assignment_id: Optional[str] = Field(None, max_length=36, description="Assignment the charge belongs to")
    operation: OperationKind = Field("text_analysis", description="Kind of analysis, determines the cost")


class AnalysisResponse(BaseModel):
    """Schema for analysis response."""
    result: Dict[str, Any]
    credits_required: int
    credits_charged: bool
    remaining_credits: int
