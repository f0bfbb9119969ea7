"""Generation collaborator — asks Gemini for a verdict plus sourced trivia."""

from __future__ import annotations

import json
import logging
import re

from google.genai import types
from pydantic import ValidationError

from .client import GeminiClient
from .errors import GenerationError
from .models.trivia import GenerationVerdict
from .prompts.trivia import SYSTEM_INSTRUCTION, TITLED_PROMPT, URL_ONLY_PROMPT
from .youtube import watch_url

logger = logging.getLogger(__name__)

_CODE_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")


def build_prompt(identifier: str, title: str | None = None) -> str:
    """User turn for *identifier*, naming the verified title when known."""
    url = watch_url(identifier)
    if title:
        return TITLED_PROMPT.format(title=title, url=url)
    return URL_ONLY_PROMPT.format(url=url)


def extract_json(text: str) -> str:
    """Pull the JSON object out of a free-text model reply.

    A fenced code block wins; otherwise the span from the first ``{`` to
    the last ``}`` is taken. Text without either comes back stripped.
    """
    stripped = text.strip()
    match = _CODE_BLOCK.search(stripped)
    if match:
        return match.group(1).strip()
    first, last = stripped.find("{"), stripped.rfind("}")
    if first != -1 and last > first:
        return stripped[first : last + 1]
    return stripped


def parse_verdict(text: str) -> GenerationVerdict:
    """Validate a raw model reply into a GenerationVerdict.

    Raises:
        GenerationError: If the reply holds no valid JSON object of the expected shape.
    """
    payload = extract_json(text)
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise GenerationError("AI response was not valid JSON") from exc
    if not isinstance(data, dict):
        raise GenerationError(f"AI response was JSON {type(data).__name__}, expected object")
    try:
        return GenerationVerdict.model_validate(data)
    except ValidationError as exc:
        raise GenerationError(f"AI response did not match the verdict schema: {exc}") from exc


async def generate_verdict(identifier: str, title: str | None = None) -> GenerationVerdict:
    """Classify *identifier* and collect trivia for it.

    Args:
        identifier: YouTube video ID.
        title: Verified title from the title-resolution lookup, if any.

    Returns:
        The parsed verdict.

    Raises:
        GenerationError: On transport failure or an unusable reply.
    """
    if title:
        logger.info("Generating trivia for %s (title: %s)", identifier, title)
    else:
        logger.info("Generating trivia for %s (no title, URL identification)", identifier)

    try:
        text = await GeminiClient.generate(
            build_prompt(identifier, title),
            system_instruction=SYSTEM_INSTRUCTION,
            tools=[types.Tool(google_search=types.GoogleSearch())],
        )
    except GenerationError:
        raise
    except Exception as exc:
        raise GenerationError(f"Gemini request failed: {exc}") from exc

    verdict = parse_verdict(text)
    logger.info(
        "Verdict for %s: accepted=%s uncertain=%s facts=%d",
        identifier, verdict.accepted, verdict.uncertain, len(verdict.items),
    )
    return verdict
