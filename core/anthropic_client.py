# core/anthropic_client.py
from typing import Dict, Any, Sequence
import httpx
from config.settings import settings
from core.entities import PdfChunk
import logging
from util.timing import timed

logger = logging.getLogger(__name__)


async def _post_json(
    url: str, headers: Dict[str, str], payload: Dict[str, Any], timeout: float = 60.0
) -> Dict[str, Any]:
    """
    Make a JSON POST to `url`. Raises for non-2xx. Returns parsed JSON dict or {} on parse failure.
    """
    async with httpx.AsyncClient(timeout=timeout) as client:
        r = await client.post(url, headers=headers, json=payload)
        r.raise_for_status()
        try:
            return r.json()
        except ValueError:
            return {}


def _first_text(data: Dict[str, Any]) -> str:
    content = data.get("content") or []
    if content and isinstance(content, list):
        node = content[0]
        if isinstance(node, dict) and node.get("type") == "text":
            return node.get("text") or ""
    return ""


def _answer_user(question: str, context: Sequence[PdfChunk]) -> str:
    """
    Build the user message: page-tagged context chunks followed by the question.
    """
    joined = (
        "\n\n---\n\n".join(f"[page {c.page}]\n{c.text}" for c in context)
        if context
        else "(no context)"
    )
    return f"CONTEXT:\n{joined}\n\nQUESTION: {question}\n\nReturn the JSON object only."


async def answer_question(
    *,
    api_key: str,
    model: str,
    api_url: str,
    question: str,
    context: Sequence[PdfChunk],
    max_tokens: int = 1200,
    timeout: float = 60.0,
) -> str:
    """
    Ask Anthropic to answer `question` from `context`. Returns the raw text of
    the reply; decoding the {answer, sources} object is the caller's job.
    """
    headers = {
        "x-api-key": api_key,
        "anthropic-version": settings.ANTHROPIC_VERSION,
        "content-type": "application/json",
    }
    payload = {
        "model": model,
        "max_tokens": max_tokens,
        "system": settings.ANSWER_SYSTEM_PROMPT,
        "messages": [{"role": "user", "content": _answer_user(question, context)}],
        "temperature": 0.0,
    }
    with timed(logger, "ai.answer", model=model, k=len(context)):
        data = await _post_json(api_url, headers, payload, timeout=timeout)

    text = _first_text(data)
    logger.info("ai.answer.reply chars=%d", len(text))
    return text
