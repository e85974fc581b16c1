"""Parsing and validation of classifier responses."""

from __future__ import annotations

import json
import math
from typing import Any, Dict

import jsonschema
from jsonschema import ValidationError

from modsentry.datatypes.moderation_datatypes import Verdict, ViolationType
from modsentry.util.logger import get_logger

logger = get_logger("verdict_parsing")

VERDICT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "isViolation": {"type": "boolean"},
        "violationType": {"enum": [v.value for v in ViolationType]},
        "confidenceScore": {"type": "number"},
        "reasoning": {"type": "string"},
    },
    "required": ["isViolation"],
}

DEFAULT_REASONING = "No violation detected"
MIN_CONFIDENCE = 0
MAX_CONFIDENCE = 100


class VerdictParseError(ValueError):
    """The classifier returned something that is not a valid verdict."""


def _reject_constant(name: str) -> float:
    raise VerdictParseError(f"response contains non-finite number {name}")


def _confidence(value: Any) -> int:
    score = float(value or 0)
    if not math.isfinite(score):
        raise VerdictParseError(f"confidence {value!r} is not a finite number")
    return min(MAX_CONFIDENCE, max(MIN_CONFIDENCE, int(round(score))))


def parse_verdict(raw: str) -> Verdict:
    """Parse the model's JSON reply into a `Verdict`.

    Only ``isViolation`` is mandatory; absent fields default to ``none``, 0 and
    a generic reasoning string. Confidence is rounded to an integer and
    clamped to 0..100.

    Raises:
        VerdictParseError: If the reply is not JSON, contains NaN or Infinity, or
            fails schema validation.
    """
    try:
        payload = json.loads(raw.strip(), parse_constant=_reject_constant)
    except json.JSONDecodeError as exc:
        raise VerdictParseError(f"response is not JSON: {exc}") from exc

    try:
        jsonschema.validate(instance=payload, schema=VERDICT_SCHEMA)
    except ValidationError as exc:
        raise VerdictParseError(f"schema validation failed: {exc.message}") from exc

    return Verdict(
        is_violation=payload["isViolation"],
        violation_type=ViolationType(payload.get("violationType") or "none"),
        confidence_score=_confidence(payload.get("confidenceScore")),
        reasoning=payload.get("reasoning") or DEFAULT_REASONING,
    )
