"""Generate avatar replies with an OpenAI chat model."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

import openai
from pydantic import TypeAdapter, ValidationError

from ..schemas.chat import MAX_REPLY_FRAGMENTS, ReplyFragment

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a professional virtual consultant.\n"
    "You will always reply with a JSON array of messages. With a maximum of 3 messages.\n"
    "Each message has a text, facialExpression, and animation property.\n"
    "The different facial expressions are: smile, serious, thoughtful, surprised, and default.\n"
    "The different animations are: Talking_0, Talking_1, Idle, Agreeing_0, and Agreeing_1."
)

_CODE_FENCE = re.compile(r"```json|```")
_FRAGMENTS_ADAPTER = TypeAdapter(list[ReplyFragment])


class DialogueError(RuntimeError):
    """Raised when the chat model fails or returns an unusable reply."""


def strip_code_fences(content: str) -> str:
    return _CODE_FENCE.sub("", content).strip()


def parse_reply_fragments(content: str) -> list[ReplyFragment]:
    """Parse and validate the model's raw reply.

    Accepts either a bare JSON array or an object with a ``messages`` array,
    optionally wrapped in Markdown code fences.
    """

    cleaned = strip_code_fences(content)
    try:
        parsed: Any = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise DialogueError(f"Model reply is not valid JSON: {exc}") from exc

    if isinstance(parsed, dict) and "messages" in parsed:
        parsed = parsed["messages"]
    if not isinstance(parsed, list):
        raise DialogueError("Model reply is not a list of messages")
    if not parsed:
        raise DialogueError("Model reply contained no messages")
    if len(parsed) > MAX_REPLY_FRAGMENTS:
        raise DialogueError(
            f"Model reply has {len(parsed)} messages, at most {MAX_REPLY_FRAGMENTS} allowed"
        )

    try:
        fragments = _FRAGMENTS_ADAPTER.validate_python(parsed)
    except ValidationError as exc:
        raise DialogueError(f"Model reply failed validation: {exc}") from exc

    # Assembly fills these in; never trust values supplied by the model.
    for fragment in fragments:
        fragment.audio = None
        fragment.lipsync = None
    return fragments


class DialogueGenerator:
    """Ask the chat model for up to three reply fragments."""

    def __init__(
        self,
        client: openai.AsyncOpenAI,
        *,
        model: str,
        temperature: float = 0.6,
        max_tokens: int = 1000,
        system_prompt: str = SYSTEM_PROMPT,
    ) -> None:
        self._client = client
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._system_prompt = system_prompt

    async def generate_replies(self, user_message: str) -> list[ReplyFragment]:
        try:
            completion = await self._client.chat.completions.create(
                model=self._model,
                max_tokens=self._max_tokens,
                temperature=self._temperature,
                messages=[
                    {"role": "system", "content": self._system_prompt},
                    {"role": "user", "content": user_message},
                ],
            )
        except openai.OpenAIError as exc:
            logger.error("Chat completion failed: %s", exc)
            raise DialogueError("Failed to generate dialogue") from exc

        if not completion.choices:
            raise DialogueError("Chat completion returned no choices")
        content = completion.choices[0].message.content or ""
        logger.debug("Raw dialogue reply: %s", content)

        try:
            fragments = parse_reply_fragments(content)
        except DialogueError:
            logger.error("Unusable dialogue reply: %r", content[:500])
            raise
        logger.info("Generated %d reply fragment(s)", len(fragments))
        return fragments


__all__ = [
    "DialogueError",
    "DialogueGenerator",
    "SYSTEM_PROMPT",
    "parse_reply_fragments",
    "strip_code_fences",
]
