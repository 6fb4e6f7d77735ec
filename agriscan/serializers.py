import json
import logging
from typing import List

import pydantic

from .errors import ParseError
from .models import AnalysisResult, HistoryItem

logger = logging.getLogger(__name__)


def result_from_payload(payload) -> AnalysisResult:
    """Validate a decoded model payload into an AnalysisResult."""
    if not isinstance(payload, dict):
        raise ParseError(f"Expected a JSON object, got {type(payload).__name__}")
    try:
        return AnalysisResult.model_validate(payload)
    except pydantic.ValidationError as e:
        raise ParseError(f"Analysis payload does not match the schema: {e}") from e


def dump_history(items: List[HistoryItem]) -> str:
    return json.dumps([item.model_dump(mode="json", by_alias=True) for item in items])


def load_history(raw) -> List[HistoryItem]:
    """Decode the persisted history list; a corrupt document reads as empty."""
    if not raw:
        return []
    try:
        records = json.loads(raw)
        if not isinstance(records, list):
            raise ValueError("history is not a list")
        return [HistoryItem.model_validate(r) for r in records]
    except (ValueError, pydantic.ValidationError) as e:
        logger.error("Failed to load history: %s", e)
        return []
