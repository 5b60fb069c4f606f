"""Completion gateway over Groq chat models.

Text-only payloads go to a light model; any payload carrying an image part
is routed to the vision-capable model. Every failure of the upstream call is
normalized into UpstreamError. An empty reply is not a failure.
"""

import structlog
from httpx import HTTPStatusError, TimeoutException
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import BaseMessage
from langchain_groq import ChatGroq

from backend.core.assembler import has_image_part
from backend.core.config import Settings
from backend.core.errors import UpstreamError

logger = structlog.get_logger(__name__)

FALLBACK_REPLY = "No answer received."


def _reply_text(message: BaseMessage) -> str:
    """Pull plain text out of a model reply (string or list-of-parts content)."""
    content = message.content
    if isinstance(content, str):
        return content
    parts = []
    for part in content or []:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            parts.append(part.get("text", ""))
    return "".join(parts)


class CompletionGateway:
    """Stateless wrapper around one text and one vision chat model."""

    def __init__(
        self,
        text_model: BaseChatModel,
        vision_model: BaseChatModel,
        text_model_name: str = "text",
        vision_model_name: str = "vision",
        configured: bool = True,
    ):
        self.text_model = text_model
        self.vision_model = vision_model
        self.text_model_name = text_model_name
        self.vision_model_name = vision_model_name
        self.configured = configured

    def is_configured(self) -> bool:
        return self.configured

    def select_model(self, payload: list[BaseMessage]) -> tuple[str, BaseChatModel]:
        """Pick the vision model if any message has an image part."""
        if has_image_part(payload):
            return self.vision_model_name, self.vision_model
        return self.text_model_name, self.text_model

    def complete(self, payload: list[BaseMessage]) -> str:
        """Send the payload upstream and return the reply text.

        Args:
            payload: Messages built by `assemble()`.

        Returns:
            The reply text, or FALLBACK_REPLY when the model returned nothing.

        Raises:
            UpstreamError: On any transport, auth, status or parsing failure.
        """
        model_name, model = self.select_model(payload)
        logger.debug("gateway.invoke", model=model_name, messages=len(payload))

        try:
            response = model.invoke(payload)
            text = _reply_text(response)
        except HTTPStatusError as e:
            logger.error("gateway.http_error", model=model_name, status=e.response.status_code)
            raise UpstreamError(f"Completion service returned {e.response.status_code}") from e
        except TimeoutException as e:
            logger.error("gateway.timeout", model=model_name)
            raise UpstreamError("Completion service timed out") from e
        except Exception as e:
            logger.error("gateway.failed", model=model_name, error=str(e))
            raise UpstreamError(f"Completion service call failed: {e}") from e

        if not text.strip():
            logger.warning("gateway.empty_reply", model=model_name)
            return FALLBACK_REPLY

        logger.info("gateway.ok", model=model_name, reply_len=len(text))
        return text


def build_gateway(settings: Settings) -> CompletionGateway:
    """Construct the Groq-backed gateway from settings.

    Raises whatever the Groq client raises when it cannot be constructed
    (for example a missing API key); the app factory handles that.
    """
    common = {
        "api_key": settings.groq_api_key or None,
        "temperature": settings.temperature,
        "max_tokens": settings.max_tokens,
        "timeout": settings.llm_timeout,
        "max_retries": 0,
    }
    return CompletionGateway(
        text_model=ChatGroq(model=settings.text_model, **common),
        vision_model=ChatGroq(model=settings.vision_model, **common),
        text_model_name=settings.text_model,
        vision_model_name=settings.vision_model,
        configured=bool(settings.groq_api_key),
    )
