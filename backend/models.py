"""Pydantic models for the analysis request/response contract."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

NOT_VISIBLE = "Not visible"

TRENDS = ("Bullish", "Bearish", "Sideways")
SIGNALS = ("UP", "DOWN", "NEUTRAL")


class ChartAnalysis(BaseModel):
    PAIR: str = NOT_VISIBLE
    TIMEFRAME: str = NOT_VISIBLE
    TREND: str = "Sideways"
    SIGNAL: str = "NEUTRAL"


class ParsedReply(BaseModel):
    analysis: ChartAnalysis
    fields: Dict[str, str] = Field(default_factory=dict)
    fallback_fields: List[str] = Field(default_factory=list)

    @property
    def has_valid_data(self) -> bool:
        return len(self.fallback_fields) < 4


class UploadedImage(BaseModel):
    filename: Optional[str] = None
    content_type: Optional[str] = None
    data: bytes = b""

    @property
    def size(self) -> int:
        return len(self.data)


class AnalysisResponse(BaseModel):
    success: bool
    analysis: Optional[ChartAnalysis] = None
    error: Optional[str] = None
    rawResponse: Optional[str] = None
    debug: Optional[Dict[str, Any]] = None

    def to_payload(self) -> Dict[str, Any]:
        """JSON body; ``analysis`` is always present, the optional keys only when set."""
        payload = self.model_dump(exclude_none=True)
        payload["analysis"] = self.analysis.model_dump() if self.analysis else None
        return payload
