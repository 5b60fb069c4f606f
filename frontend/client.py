"""HTTP client for the chat proxy backend."""

import os

import requests

from frontend.store import AttachedImage, Turn

API_BASE = os.environ.get("API_BASE", "http://localhost:8787")
API_TIMEOUT = int(os.environ.get("API_TIMEOUT", "60"))

# Prior turns lose their image on resend; this keeps image-only turns in the history.
IMAGE_PLACEHOLDER = "[afbeelding]"


class ChatClientError(Exception):
    """The backend could not be reached or answered with something unusable."""
    pass


def _wire_turn(turn: Turn) -> dict:
    content = turn.content
    if not content and turn.image is not None:
        content = IMAGE_PLACEHOLDER
    return {"role": turn.role, "content": content}


class ChatClient:
    """Sends conversations to POST /api/chat and returns the reply text."""

    def __init__(self, base_url: str = API_BASE, timeout: int = API_TIMEOUT,
                 session: requests.Session | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def chat_endpoint(self) -> str:
        return f"{self.base_url}/api/chat"

    def send(self, history: list[Turn], text: str, image: AttachedImage | None = None) -> str:
        """POST the conversation; JSON without an image, multipart with one.

        Raises:
            ChatClientError: On connection failure, non-2xx status or a body
                without a string `reply`.
        """
        try:
            if image is None:
                messages = [_wire_turn(t) for t in history]
                messages.append({"role": "user", "content": text})
                resp = self.session.post(self.chat_endpoint, json={"messages": messages},
                                         timeout=self.timeout)
            else:
                data = {"message": text}
                for i, turn in enumerate(history):
                    wire = _wire_turn(turn)
                    data[f"messages[{i}][role]"] = wire["role"]
                    data[f"messages[{i}][content]"] = wire["content"]
                files = {"image": (image.name, image.data, image.mime_type)}
                resp = self.session.post(self.chat_endpoint, data=data, files=files,
                                         timeout=self.timeout)
            resp.raise_for_status()
            body = resp.json()
        except requests.RequestException as e:
            raise ChatClientError(f"Request failed: {e}") from e
        except ValueError as e:
            raise ChatClientError("Response was not valid JSON") from e

        reply = body.get("reply") if isinstance(body, dict) else None
        if not isinstance(reply, str):
            raise ChatClientError("Response did not contain a reply")
        return reply

    def is_healthy(self) -> bool:
        """GET /api/health; False on any failure."""
        try:
            resp = self.session.get(f"{self.base_url}/api/health", timeout=3)
            return resp.status_code == 200 and resp.json().get("ok") is True
        except (requests.RequestException, ValueError):
            return False
