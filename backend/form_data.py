"""
multipart/form-data parsing for the serverless handler.

Built on python-multipart's streaming MultipartParser (the same parser
Starlette uses for FastAPI forms), so part bodies are never split on
boundary-like byte sequences inside binary image data.
"""

from typing import Dict, List, Optional

from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, parse_options_header

from .errors import MalformedRequestError
from .models import UploadedImage


class _Part:
    def __init__(self):
        self.headers: Dict[str, str] = {}
        self.chunks: List[bytes] = []

    @property
    def disposition(self) -> Dict[bytes, bytes]:
        _, options = parse_options_header(self.headers.get("content-disposition", ""))
        return options


def parse_upload(body: bytes, content_type: Optional[str], field_name: str = "file") -> Optional[UploadedImage]:
    """
    Return the first file part called ``field_name`` from a multipart body,
    or None when the form has no such part.
    """
    mime, options = parse_options_header(content_type or "")
    if mime != b"multipart/form-data":
        raise MalformedRequestError("Request must be multipart/form-data")
    boundary = options.get(b"boundary")
    if not boundary:
        raise MalformedRequestError("Missing multipart boundary")

    parts: List[_Part] = []
    header_field = bytearray()
    header_value = bytearray()

    def on_part_begin():
        parts.append(_Part())

    def on_header_field(data, start, end):
        header_field.extend(data[start:end])

    def on_header_value(data, start, end):
        header_value.extend(data[start:end])

    def on_header_end():
        name = header_field.decode("latin-1").lower()
        parts[-1].headers[name] = header_value.decode("latin-1")
        header_field.clear()
        header_value.clear()

    def on_part_data(data, start, end):
        parts[-1].chunks.append(bytes(data[start:end]))

    callbacks = {
        "on_part_begin": on_part_begin,
        "on_header_field": on_header_field,
        "on_header_value": on_header_value,
        "on_header_end": on_header_end,
        "on_part_data": on_part_data,
    }

    parser = MultipartParser(boundary, callbacks)
    try:
        parser.write(body)
        parser.finalize()
    except MultipartParseError as e:
        raise MalformedRequestError(f"Malformed multipart body: {e}") from e

    wanted = field_name.encode()
    for part in parts:
        disposition = part.disposition
        if disposition.get(b"name") != wanted or b"filename" not in disposition:
            continue
        filename = disposition[b"filename"].decode("utf-8", "replace")
        data = b"".join(part.chunks)
        # Browsers send an empty, unnamed part when no file was picked
        if not filename and not data:
            continue
        return UploadedImage(
            filename=filename or None,
            content_type=part.headers.get("content-type"),
            data=data,
        )
    return None
