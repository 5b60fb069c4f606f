"""FastAPI endpoints for the chat proxy.

GET /api/health - liveness check
POST /api/chat - relay a conversation (JSON or multipart with one image)
GET / - root ping for hosting platforms
"""

import json
import re
import time
from typing import Any

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import FormData, UploadFile

from backend.api.schemas import ChatReply, ErrorBody, HealthResponse
from backend.core.assembler import assemble
from backend.core.errors import PayloadTooLargeError, UpstreamError, ValidationError
from backend.core.uploads import UploadedImage, UploadHandler

logger = structlog.get_logger(__name__)

router = APIRouter()

SERVER_ERROR = "Server error"
PAYLOAD_TOO_LARGE = "Payload too large"
MAX_JSON_BYTES = 1024 * 1024
_FORM_TURN_KEY = re.compile(r"^messages\[(\d+)\]\[(role|content)\]$")
_FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


def _error_response(req: Request, status_code: int, message: str, exc: Exception) -> JSONResponse:
    """Build the JSON error body, exposing details outside production only."""
    settings = req.app.state.settings
    body = ErrorBody(error=message, details=None if settings.is_production else str(exc))
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def _split_new_turn(messages: list[Any], message: Any) -> tuple[list[Any], str]:
    """Separate the prior history from the new user text of a JSON request.

    When `message` is absent the trailing user entry of `messages` is the
    new turn, since the client resends its whole conversation.
    """
    if message is not None:
        if not isinstance(message, str):
            raise ValidationError("message must be a string")
        return messages, message

    if messages:
        last = messages[-1]
        if isinstance(last, dict) and last.get("role") == "user" and isinstance(last.get("content"), str):
            return messages[:-1], last["content"]
    return messages, ""


async def _read_json(req: Request) -> tuple[list[Any], str]:
    raw = await req.body()
    if len(raw) > MAX_JSON_BYTES:
        raise PayloadTooLargeError(PAYLOAD_TOO_LARGE)
    try:
        body = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationError("Invalid JSON body") from e

    messages = body.get("messages") if isinstance(body, dict) else None
    if not isinstance(messages, list):
        raise ValidationError("messages (array) is required")
    return _split_new_turn(messages, body.get("message"))


def _turns_from_form(form: FormData) -> list[dict[str, Any]]:
    """Rebuild `messages[i][role|content]` fields into an ordered list."""
    indexed: dict[int, dict[str, Any]] = {}
    for key, value in form.multi_items():
        match = _FORM_TURN_KEY.match(key)
        if match and isinstance(value, str):
            indexed.setdefault(int(match.group(1)), {})[match.group(2)] = value
    return [indexed[i] for i in sorted(indexed)]


async def _receive_image(form: FormData, uploads: UploadHandler) -> UploadedImage | None:
    upload = form.get("image")
    if not isinstance(upload, UploadFile) or not (upload.filename or upload.size):
        return None

    # Read one byte past the ceiling so oversize files are detected without loading them whole.
    data = await upload.read(uploads.max_bytes + 1)
    size = upload.size if upload.size is not None else len(data)
    return await run_in_threadpool(
        uploads.receive, data, upload.content_type or "", size, filename=upload.filename
    )


@router.get("/api/health", response_model=HealthResponse)
def health():
    """Liveness check. No side effects."""
    return HealthResponse(ok=True)


@router.post("/api/chat", response_model=ChatReply)
async def chat(req: Request):
    """Relay one conversation to the completion service and return its reply."""
    start = time.monotonic()
    uploads: UploadHandler = req.app.state.uploads
    gateway = req.app.state.gateway
    content_type = req.headers.get("content-type", "")
    is_form = content_type.startswith(_FORM_CONTENT_TYPES)
    image = None

    try:
        if is_form:
            async with req.form() as form:
                prior = _turns_from_form(form)
                new_text = form.get("message")
                new_text = new_text if isinstance(new_text, str) else ""
                image = await _receive_image(form, uploads)
        else:
            prior, new_text = await _read_json(req)

        logger.info("chat.request", prior_turns=len(prior), has_image=image is not None,
                    form=is_form)

        payload = await run_in_threadpool(assemble, prior, new_text, image)
        if gateway is None:
            raise UpstreamError("Completion service is not configured")
        reply = await run_in_threadpool(gateway.complete, payload)

    except PayloadTooLargeError as e:
        logger.warning("chat.too_large")
        return _error_response(req, 413, PAYLOAD_TOO_LARGE, e)
    except ValidationError as e:
        logger.warning("chat.invalid_request", reason=str(e))
        return _error_response(req, 400, str(e), e)
    except UpstreamError as e:
        logger.error("chat.upstream_failed", error=str(e))
        return _error_response(req, 500, SERVER_ERROR, e)
    except Exception as e:
        logger.error("chat.failed", error=str(e))
        return _error_response(req, 500, SERVER_ERROR, e)
    finally:
        if image is not None:
            uploads.release(image)

    latency_ms = int((time.monotonic() - start) * 1000)
    logger.info("chat.response", latency_ms=latency_ms, reply_len=len(reply))
    return ChatReply(reply=reply)


@router.get("/")
@router.head("/")
def root_health():
    """Basic root health check for deployment platforms like Render."""
    return {"status": "ok", "service": "freegpt-api"}
