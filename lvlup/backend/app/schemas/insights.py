# backend/app/schemas/insights.py
from typing import Any, Dict, Optional

from pydantic import BaseModel


class AnalysisResult(BaseModel):
    available: bool
    data: Optional[Dict[str, Any]] = None
    message: Optional[str] = None


class BehavioralInsights(BaseModel):
    employee_id: str
    feedback_count: int
    collaboration: AnalysisResult
    sentiment: AnalysisResult
    leadership: AnalysisResult
