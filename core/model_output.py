# core/model_output.py
import json
from typing import Any, List
from core.entities import ModelOutput
from util.errors import MalformedModelOutput
import logging

logger = logging.getLogger(__name__)

SOURCE_SEPARATOR = ". "


def _strip_fences(raw: str) -> str:
    text = (raw or "").strip()
    if text.startswith("```"):
        text = text.strip("`")
        if text.startswith("json"):
            text = text[4:]
        text = text.strip()
    return text


def normalize_sources(sources: Any) -> List[str]:
    """
    Sources arrive as one period-joined string or as a list; either way the
    result is a list of trimmed, non-empty excerpt strings.
    """
    if isinstance(sources, str):
        parts = sources.split(SOURCE_SEPARATOR)
    elif isinstance(sources, (list, tuple)):
        parts = [s for s in sources if isinstance(s, str)]
    else:
        parts = []
    return [p.strip() for p in parts if p and p.strip()]


def _decode(raw: str) -> ModelOutput:
    try:
        parsed = json.loads(_strip_fences(raw))
    except (TypeError, ValueError) as e:
        raise MalformedModelOutput("not json") from e
    if not isinstance(parsed, dict):
        raise MalformedModelOutput(f"expected object, got {type(parsed).__name__}")
    answer = parsed.get("answer")
    if not isinstance(answer, str):
        raise MalformedModelOutput("missing answer")
    return ModelOutput(answer=answer, sources=normalize_sources(parsed.get("sources")))


def parse_model_output(raw: str) -> ModelOutput:
    """
    Decode the {answer, sources} reply. A malformed reply is never fatal:
    the raw text becomes the answer and there are no sources.
    """
    try:
        out = _decode(raw)
    except MalformedModelOutput as e:
        logger.warning("model.output.malformed reason=%s chars=%d", e, len(raw or ""))
        return ModelOutput(answer=raw or "", sources=[])
    logger.info("model.output.ok sources=%d", len(out.sources))
    return out
