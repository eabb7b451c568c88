"""Parsing of free-text model output into categorization results.

Model output is noisy: prose, markdown fences, trailing commentary. The parser
extracts the first balanced JSON object and validates it against a fixed
schema. It never raises; a response that can't be used yields no results.
"""

import json

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class AiResultItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    index: int = Field(ge=0, strict=True)
    category_id: str | None = Field(alias="categoryId")
    confidence: float = Field(ge=0.0, le=1.0, strict=True)
    keyword: str


class AiResponse(BaseModel):
    results: list[AiResultItem]


class AiParseResult(BaseModel):
    """Outcome of parsing one model response.

    ``ok`` is False when nothing usable could be parsed; ``reason`` then says why.
    """

    ok: bool
    results: list[AiResultItem] = []
    reason: str | None = None


def extract_first_json_object(raw: str) -> str | None:
    """Return the first balanced ``{...}`` span in raw text, or None.

    Braces inside JSON strings (including escaped quotes) don't count.
    """
    start = raw.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False

    for pos in range(start, len(raw)):
        char = raw[pos]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return raw[start : pos + 1]

    return None


def parse_ai_response(raw: str) -> AiParseResult:
    """Parse a model response into results with a non-null category.

    A response that has no JSON object, invalid JSON, or any entry failing
    validation yields ``ok=False`` and no results. Individual entries are not
    salvaged.
    """
    span = extract_first_json_object(raw or "")
    if span is None:
        return AiParseResult(ok=False, reason="no JSON object found")

    try:
        payload = json.loads(span)
    except json.JSONDecodeError as e:
        return AiParseResult(ok=False, reason=f"invalid JSON: {e.msg}")

    try:
        response = AiResponse.model_validate(payload)
    except ValidationError as e:
        return AiParseResult(ok=False, reason=f"schema mismatch: {e.error_count()} errors")

    results = [item for item in response.results if item.category_id is not None]
    return AiParseResult(ok=True, results=results)
