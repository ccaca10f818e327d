"""
Transport-independent request validation helpers.

Request bodies are declared as pydantic models in ``loyalty.models``. FastAPI
runs them automatically for HTTP requests; ``validate_payload`` runs the same
models on raw input (scripts, tests, queued jobs) and returns the result as a
value instead of raising.
"""
import re
from typing import Any, Dict, Iterable, List, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)

_SCRIPT_RE = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]*>")


def strip_markup(value: Optional[str]) -> Optional[str]:
    """Remove script blocks and HTML tags from free text"""
    if value is None:
        return None
    cleaned = _SCRIPT_RE.sub("", value)
    cleaned = _TAG_RE.sub("", cleaned)
    return cleaned.strip()


def format_validation_errors(errors: Iterable[Dict[str, Any]]) -> List[Dict[str, str]]:
    """Flatten pydantic error dicts into ``{path, message}`` pairs"""
    formatted = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ())]
        formatted.append({
            "path": ".".join(loc),
            "message": error.get("msg", "Invalid value"),
        })
    return formatted


def validate_payload(
    model: Type[ModelT],
    raw: Any
) -> Tuple[Optional[ModelT], List[Dict[str, str]]]:
    """
    Validate raw input against a request model.

    Returns:
        ``(instance, [])`` on success, ``(None, errors)`` otherwise, where each
        error is a ``{"path": ..., "message": ...}`` dict.
    """
    try:
        return model.model_validate(raw), []
    except PydanticValidationError as e:
        return None, format_validation_errors(e.errors())
