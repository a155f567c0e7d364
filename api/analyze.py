"""
Vercel Serverless Function for Chart Analysis
Handles: multipart upload, validation, Gemini Vision call, reply parsing
"""

import json
import logging
from functools import lru_cache
from http.server import BaseHTTPRequestHandler
from typing import Tuple

from backend.config import Settings
from backend.errors import AnalyzerError, FileTooLargeError, MalformedRequestError
from backend.form_data import parse_upload
from backend.logging_config import configure_logging
from backend.models import AnalysisResponse
from backend.prompt import load_prompt
from backend.service import analyze_chart, error_response
from backend.validation import format_size
from backend.vision import GeminiVisionClient, VisionClient

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}

# Room for boundaries and part headers on top of the image itself
MULTIPART_OVERHEAD = 64 * 1024


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    settings = Settings.from_env()
    configure_logging(settings.log_level, settings.log_file)
    return settings


@lru_cache(maxsize=1)
def load_context() -> Tuple[VisionClient, str]:
    """Gemini client and prompt, kept for the lifetime of a warm function instance."""
    settings = get_settings()
    return GeminiVisionClient.from_settings(settings), load_prompt(settings.prompt_file)


class handler(BaseHTTPRequestHandler):
    def do_OPTIONS(self):
        self.send_response(200)
        self._send_cors_headers()
        self.send_header("Content-Length", "0")
        self.end_headers()

    def do_POST(self):
        try:
            settings = get_settings()
            body = self._read_body(settings.max_upload_bytes)

            upload = parse_upload(body, self.headers.get("Content-Type"))
            if upload is not None:
                logger.info("File received: %s %s %d bytes", upload.filename, upload.content_type, upload.size)

            result = analyze_chart(upload, load_context, settings.max_upload_bytes)
            self._send_json(200, result)

        except AnalyzerError as e:
            log = logger.error if e.status_code >= 500 else logger.warning
            log("Analysis request failed: %s", e.message)
            self._send_json(e.status_code, error_response(e))
        except Exception as e:
            logger.exception("Analysis error")
            self._send_json(500, AnalysisResponse(success=False, error=f"Analysis failed: {e}"))

    def _read_body(self, max_upload_bytes: int) -> bytes:
        try:
            content_length = int(self.headers.get("Content-Length", 0))
        except ValueError:
            raise MalformedRequestError("Invalid Content-Length header") from None

        if content_length <= 0:
            raise MalformedRequestError("Request body is empty")
        if content_length > max_upload_bytes + MULTIPART_OVERHEAD:
            raise FileTooLargeError(
                f"Request is too large ({format_size(content_length)}). "
                f"Maximum file size is {format_size(max_upload_bytes)}."
            )
        return self.rfile.read(content_length)

    def _send_cors_headers(self):
        for name, value in CORS_HEADERS.items():
            self.send_header(name, value)

    def _send_json(self, status: int, body: AnalysisResponse):
        payload = json.dumps(body.to_payload()).encode()
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(payload)))
        self._send_cors_headers()
        self.end_headers()
        self.wfile.write(payload)

    def log_message(self, format, *args):
        logger.info("%s - %s", self.address_string(), format % args)
