"""
Chart analysis pipeline shared by the FastAPI app and the serverless handler:
validate upload -> one model call -> parse reply -> response envelope.
"""

import logging
from typing import Callable, Optional, Tuple

from .errors import AnalyzerError
from .models import AnalysisResponse, UploadedImage
from .response_parser import parse_analysis
from .validation import validate_upload
from .vision import VisionClient

logger = logging.getLogger(__name__)

# Returns the vision client and prompt; only called once the upload is valid,
# so bad uploads are rejected even when the server is misconfigured.
ContextLoader = Callable[[], Tuple[VisionClient, str]]


def analyze_chart(
    upload: Optional[UploadedImage],
    load_context: ContextLoader,
    max_upload_bytes: int,
) -> AnalysisResponse:
    image = validate_upload(upload, max_upload_bytes)
    client, prompt = load_context()

    raw_response = client.describe_chart(prompt, image)
    parsed = parse_analysis(raw_response)

    logger.info("Final result: %s (fallbacks: %s)", parsed.analysis.model_dump(), parsed.fallback_fields or "none")

    return AnalysisResponse(
        success=True,
        analysis=parsed.analysis,
        rawResponse=raw_response,
        debug={
            "hasValidData": parsed.has_valid_data,
            "fallbackFields": parsed.fallback_fields,
            "parsedResult": parsed.fields,
            "model": client.model_name,
        },
    )


def error_response(exc: AnalyzerError) -> AnalysisResponse:
    return AnalysisResponse(success=False, analysis=None, error=exc.message)
