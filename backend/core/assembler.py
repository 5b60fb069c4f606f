"""Request assembly for the completion service.

Turns the client-supplied history plus the new user turn into the ordered
list of LangChain messages sent upstream. The system instruction is added
here and nowhere else, so it never appears in the client's conversation.
"""

from collections.abc import Iterable
from typing import Any

import structlog
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from pydantic import ValidationError as PydanticValidationError

from backend.agent.prompts import SYSTEM_PROMPT
from backend.api.schemas import Turn
from backend.core.errors import ValidationError
from backend.core.uploads import UploadedImage

logger = structlog.get_logger(__name__)

_MESSAGE_TYPES = {"user": HumanMessage, "assistant": AIMessage}


def _coerce_turn(entry: Any) -> Turn | None:
    """Return a valid Turn or None if the entry is malformed."""
    if isinstance(entry, Turn):
        return entry
    try:
        return Turn.model_validate(entry)
    except PydanticValidationError:
        return None


def valid_turns(entries: Iterable[Any]) -> list[Turn]:
    """Keep well-formed turns in their original order, dropping the rest."""
    turns = []
    dropped = 0
    for entry in entries:
        turn = _coerce_turn(entry)
        if turn is None:
            dropped += 1
            continue
        turns.append(turn)
    if dropped:
        logger.debug("assembler.dropped_turns", dropped=dropped, kept=len(turns))
    return turns


def _new_turn_content(text: str, image: UploadedImage | None) -> str | list[dict]:
    if image is None:
        return text
    return [
        {"type": "text", "text": text},
        {"type": "image_url", "image_url": {"url": image.data_uri()}},
    ]


def assemble(
    prior_turns: Iterable[Any],
    new_text: str,
    image: UploadedImage | None = None,
    system_prompt: str = SYSTEM_PROMPT,
) -> list[BaseMessage]:
    """Build the upstream payload: system turn, prior turns, then the new turn.

    Args:
        prior_turns: Earlier turns as sent by the client (dicts or Turn).
        new_text: Text of the new user turn. Surrounding whitespace is removed.
        image: Optional uploaded image attached to the new turn.
        system_prompt: Instruction placed first in every payload.

    Returns:
        Ordered list of LangChain messages.

    Raises:
        ValidationError: If the new turn has neither text nor an image.
    """
    text = (new_text or "").strip()
    if not text and image is None:
        raise ValidationError("message text or image is required")

    payload: list[BaseMessage] = [SystemMessage(content=system_prompt)]
    for turn in valid_turns(prior_turns):
        payload.append(_MESSAGE_TYPES[turn.role](content=turn.content))
    payload.append(HumanMessage(content=_new_turn_content(text, image)))
    return payload


def has_image_part(payload: Iterable[BaseMessage]) -> bool:
    """True if any message in the payload carries an image part."""
    for message in payload:
        content = message.content
        if isinstance(content, list) and any(
            isinstance(part, dict) and part.get("type") == "image_url" for part in content
        ):
            return True
    return False
