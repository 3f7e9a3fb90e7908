"""Boundary checks for what comes back from the provider.

Everything the model returns is treated as untrusted: structured bodies are
parsed into :class:`KeywordPayload` and rejected with ``SchemaParseError``
when they don't fit, and grounding metadata is flattened into ``Source``
records.
"""
import json
import logging
from typing import Any, Iterable, List

from pydantic import ValidationError as PydanticValidationError

from strategy_lab.errors import SchemaParseError
from strategy_lab.models import KeywordPayload, Source

logger = logging.getLogger(__name__)

# Mean trend value may differ from volume by at most one order of magnitude.
SCALE_TOLERANCE = 10.0


def parse_keyword_payload(raw_text: str) -> KeywordPayload:
    """Parse and validate the analysis model's JSON body."""
    try:
        data = json.loads(raw_text or "")
    except json.JSONDecodeError as e:
        logger.error(f"Analysis response is not JSON: {str(e)}")
        raise SchemaParseError() from e

    if not isinstance(data, dict):
        logger.error(f"Analysis response is a {type(data).__name__}, expected an object")
        raise SchemaParseError()

    try:
        payload = KeywordPayload.model_validate(data)
    except PydanticValidationError as e:
        logger.error(f"Analysis response does not match schema: {e.error_count()} error(s)")
        raise SchemaParseError() from e

    if not trend_matches_volume(payload):
        logger.error(
            f"Trend values are not on the volume scale (volume={payload.volume}, "
            f"trend={[p.value for p in payload.trend]})"
        )
        raise SchemaParseError()

    return payload


def trend_matches_volume(payload: KeywordPayload, tolerance: float = SCALE_TOLERANCE) -> bool:
    """True when the trend's mean sits within ``tolerance``x of the volume."""
    values = [p.value for p in payload.trend]
    mean = sum(values) / len(values)
    high = max(mean, payload.volume)
    low = min(mean, payload.volume)
    # Both near zero: nothing to compare.
    if high < tolerance:
        return True
    if low <= 0:
        return False
    return high / low <= tolerance


def dedupe_sources(sources: Iterable[Source]) -> List[Source]:
    seen = set()
    unique = []
    for source in sources:
        if source.uri in seen:
            continue
        seen.add(source.uri)
        unique.append(source)
    return unique


def extract_citations(response: Any) -> List[Source]:
    """Collect web citations from a grounded response, first occurrence wins."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []

    metadata = getattr(candidates[0], "grounding_metadata", None)
    chunks = getattr(metadata, "grounding_chunks", None) or []

    sources = []
    for chunk in chunks:
        web = getattr(chunk, "web", None)
        uri = getattr(web, "uri", None)
        if not uri:
            continue
        sources.append(Source(uri=uri, title=getattr(web, "title", None) or uri))
    return dedupe_sources(sources)
