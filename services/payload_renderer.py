# User value: This file stamps each page's identifier into its data file so the receiver can match data to pages.
import json
from typing import Any, Optional

from schemas.job_contract import PAYLOAD_FORMAT_JSON, PAYLOAD_FORMAT_XML, PAYLOAD_FORMATS, PLACEHOLDER_TOKENS
from services.errors import TemplateError

ARRAY_FIRST_SEGMENT = "[]"


def _ensure_text(payload: Any) -> str:
    if isinstance(payload, bytes):
        try:
            return payload.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise TemplateError(f"Payload is not valid UTF-8: {exc}") from exc
    if not isinstance(payload, str):
        raise TemplateError(f"Payload must be text, got {type(payload).__name__}")
    try:
        payload.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise TemplateError(f"Payload is not valid UTF-8: {exc}") from exc
    return payload


def render_xml(payload: Any, identifier: int) -> str:
    text = _ensure_text(payload)
    value = str(identifier)
    for token in PLACEHOLDER_TOKENS:
        text = text.replace(token, value)
    return text


def parse_field_path(field_path: str) -> list[str]:
    segments = [s.strip() for s in field_path.strip().split(".")]
    if not segments or any(not s for s in segments):
        raise TemplateError(f"Invalid field path: {field_path!r}")
    return segments


def inject_identifier(document: dict, field_path: str, identifier: int) -> dict:
    """Assign ``identifier`` at a dot-delimited path, creating objects on the way.

    ``[]`` steps into the first element of an array. The document is modified
    in place and returned.
    """
    segments = parse_field_path(field_path)
    current: Any = document
    for segment in segments[:-1]:
        if segment == ARRAY_FIRST_SEGMENT:
            if not isinstance(current, list) or not current:
                raise TemplateError(f"Path {field_path!r}: '[]' needs a non-empty array")
            current = current[0]
            continue
        if not isinstance(current, dict):
            raise TemplateError(f"Path {field_path!r}: cannot descend into {type(current).__name__} at {segment!r}")
        nxt = current.get(segment)
        if nxt is None:
            nxt = {}
            current[segment] = nxt
        elif not isinstance(nxt, (dict, list)):
            raise TemplateError(f"Path {field_path!r}: {segment!r} holds a {type(nxt).__name__}, not an object")
        current = nxt

    final_key = segments[-1]
    if final_key == ARRAY_FIRST_SEGMENT or not isinstance(current, dict):
        raise TemplateError(f"Path {field_path!r}: terminal segment must be an object key")
    current[final_key] = identifier
    return document


def render_json(payload: Any, field_path: Optional[str], identifier: int) -> str:
    text = _ensure_text(payload)
    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        raise TemplateError(f"Payload is not valid JSON: {exc}") from exc
    if not isinstance(document, dict):
        raise TemplateError(f"JSON payload must be an object, got {type(document).__name__}")

    if field_path and field_path.strip():
        inject_identifier(document, field_path, identifier)
    out = json.dumps(document, indent=2, ensure_ascii=False)
    try:
        # escaped lone surrogates parse but cannot be written back as UTF-8
        out.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise TemplateError(f"Payload is not valid UTF-8: {exc}") from exc
    return out


def render_payload(payload: Any, payload_format: str, field_path: Optional[str], identifier: int) -> str:
    fmt = (payload_format or PAYLOAD_FORMAT_XML).strip().lower()
    if fmt not in PAYLOAD_FORMATS:
        raise TemplateError(f"Unsupported payload format: {payload_format}")
    if fmt == PAYLOAD_FORMAT_JSON:
        return render_json(payload, field_path, identifier)
    return render_xml(payload, identifier)
