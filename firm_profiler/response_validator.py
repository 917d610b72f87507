"""
Parsing and cleaning of extraction service responses.

The response is free-form text expected to hold one JSON object. Parsing
tries the whole text first, then falls back to locating an embedded object.
Cleaning is lenient and field by field: bad values and bad array elements are
dropped, the rest is kept. Nested entities survive only with a non-empty
identifying field (``name`` or ``title``).
"""

import json
import logging
import math
import re
from typing import Any, Dict, List, Optional

from .errors import ParseError
from .quality_scoring import score_profile
from .schemas import AnalysisOutcome, ExtractedProfile

logger = logging.getLogger(__name__)

# Field kinds
STRING = "string"
NUMBER = "number"
STRING_LIST = "string_list"

PROJECT_STATUSES = frozenset({"completed", "in-progress", "planned"})
PUBLICATION_TYPES = frozenset({"article", "book", "magazine", "online"})
EXHIBITION_TYPES = frozenset({"solo", "group", "competition"})

# JSON keys are the camelCase names used in the instruction template
PROJECT_FIELDS = {
    "name": STRING,
    "type": STRING,
    "status": PROJECT_STATUSES,
    "year": NUMBER,
    "location": STRING,
    "size": STRING,
    "client": STRING,
    "budget": STRING,
    "awards": STRING_LIST,
    "sustainability": STRING_LIST,
    "materials": STRING_LIST,
    "designFeatures": STRING_LIST,
}

AWARD_FIELDS = {
    "name": STRING,
    "year": NUMBER,
    "category": STRING,
    "organization": STRING,
    "description": STRING,
}

PUBLICATION_FIELDS = {
    "title": STRING,
    "year": NUMBER,
    "publisher": STRING,
    "type": PUBLICATION_TYPES,
    "url": STRING,
    "description": STRING,
}

EXHIBITION_FIELDS = {
    "name": STRING,
    "year": NUMBER,
    "location": STRING,
    "type": EXHIBITION_TYPES,
    "description": STRING,
}

PRESS_FIELDS = {
    "title": STRING,
    "year": NUMBER,
    "source": STRING,
    "url": STRING,
    "description": STRING,
}


class EntityList:
    """Field kind for an array of nested entities."""

    def __init__(self, fields: Dict[str, Any], key_field: str):
        self.fields = fields
        self.key_field = key_field


PROFILE_FIELDS = {
    "name": STRING,
    "website": STRING,
    "description": STRING,
    "address": STRING,
    "phone": STRING,
    "email": STRING,
    "foundedYear": NUMBER,
    "companySize": STRING,
    "headquarters": STRING,
    "keyArchitects": STRING_LIST,
    "specialties": STRING_LIST,
    "projects": EntityList(PROJECT_FIELDS, "name"),
    "projectTypes": STRING_LIST,
    "projectScales": STRING_LIST,
    "geographicFocus": STRING_LIST,
    "certifications": STRING_LIST,
    "awards": EntityList(AWARD_FIELDS, "name"),
    "publications": EntityList(PUBLICATION_FIELDS, "title"),
    "exhibitions": EntityList(EXHIBITION_FIELDS, "name"),
    "press": EntityList(PRESS_FIELDS, "title"),
    "designApproach": STRING_LIST,
}


def locate_json_object(text: str) -> Dict[str, Any]:
    """
    Find the JSON object in a response.

    Order of attempts: the whole text; the span from the first '{' to the
    last '}'; then the first position from which a complete object decodes.

    Raises:
        ParseError: If no JSON object can be located.
    """
    if not text or not text.strip():
        raise ParseError("Empty extraction response", raw_text=text or "")

    try:
        data = json.loads(text.strip())
        if isinstance(data, dict):
            return data
    except json.JSONDecodeError:
        pass

    match = re.search(r"\{[\s\S]*\}", text)
    if match:
        try:
            data = json.loads(match.group())
            if isinstance(data, dict):
                return data
        except json.JSONDecodeError:
            pass

    decoder = json.JSONDecoder()
    start = text.find("{")
    while start != -1:
        try:
            data, _ = decoder.raw_decode(text, start)
            if isinstance(data, dict):
                logger.debug("Recovered JSON object at offset %d", start)
                return data
        except json.JSONDecodeError:
            pass
        start = text.find("{", start + 1)

    raise ParseError("No JSON found in extraction response", raw_text=text)


def clean_string(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def clean_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def clean_string_list(value: Any) -> Optional[List[str]]:
    if not isinstance(value, list):
        return None
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def clean_choice(value: Any, allowed: frozenset) -> Optional[str]:
    text = clean_string(value)
    if text is None:
        return None
    text = text.lower()
    return text if text in allowed else None


def clean_entities(value: Any, kind: EntityList) -> Optional[List[Dict[str, Any]]]:
    if not isinstance(value, list):
        return None
    entities = []
    for item in value:
        if not isinstance(item, dict) or clean_string(item.get(kind.key_field)) is None:
            continue
        entities.append(clean_fields(item, kind.fields))
    return entities


def clean_value(value: Any, kind: Any) -> Any:
    if kind == STRING:
        return clean_string(value)
    if kind == NUMBER:
        return clean_number(value)
    if kind == STRING_LIST:
        return clean_string_list(value)
    if isinstance(kind, frozenset):
        return clean_choice(value, kind)
    if isinstance(kind, EntityList):
        return clean_entities(value, kind)
    raise ValueError(f"Unknown field kind: {kind!r}")


def clean_fields(data: Dict[str, Any], fields: Dict[str, Any]) -> Dict[str, Any]:
    """Keep the known fields of a mapping whose values pass their cleaner."""
    cleaned = {}
    for key, kind in fields.items():
        if key not in data:
            continue
        value = clean_value(data[key], kind)
        if value is not None:
            cleaned[key] = value
    return cleaned


def clean_extracted_data(data: Dict[str, Any]) -> ExtractedProfile:
    """Clean a raw response object into a partial profile."""
    return ExtractedProfile.model_validate(clean_fields(data, PROFILE_FIELDS))


def validate(raw_text: str) -> AnalysisOutcome:
    """
    Parse, clean and score an extraction response.

    Args:
        raw_text: The text returned by the extraction service.

    Returns:
        AnalysisOutcome for the run.

    Raises:
        ParseError: If no JSON object can be located in the text.
    """
    data = locate_json_object(raw_text)
    profile = clean_extracted_data(data)
    outcome = score_profile(profile)
    logger.info(
        "Validated extraction: confidence %d%%, quality %s",
        outcome.confidence, outcome.data_quality,
    )
    return outcome
