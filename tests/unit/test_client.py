"""Unit tests for the frontend HTTP client (requests mocked)."""

from unittest.mock import MagicMock

import pytest
import requests

from frontend.client import IMAGE_PLACEHOLDER, ChatClient, ChatClientError
from frontend.store import ERROR_REPLY, AttachedImage, ConversationStore, Turn


def _response(status=200, body=None):
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = body if body is not None else {"reply": "Hi there"}
    if status >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status} error")
    return resp


@pytest.fixture
def session():
    session = MagicMock(spec=requests.Session)
    session.post.return_value = _response()
    return session


@pytest.fixture
def chat_client(session):
    return ChatClient("http://api.test/", timeout=5, session=session)


@pytest.fixture
def image(png_bytes):
    return AttachedImage(name="cat.png", mime_type="image/png", data=png_bytes)


class TestSendJson:

    def test_posts_history_plus_new_turn(self, chat_client, session):
        history = [Turn("user", "Hello"), Turn("assistant", "Hi")]
        assert chat_client.send(history, "How are you?") == "Hi there"

        url = session.post.call_args[0][0]
        body = session.post.call_args.kwargs["json"]
        assert url == "http://api.test/api/chat"
        assert body["messages"] == [
            {"role": "user", "content": "Hello"},
            {"role": "assistant", "content": "Hi"},
            {"role": "user", "content": "How are you?"},
        ]
        assert session.post.call_args.kwargs["timeout"] == 5


class TestSendMultipart:

    def test_flattened_history_and_file(self, chat_client, session, image):
        history = [Turn("user", "", image=image), Turn("assistant", "A cat")]
        chat_client.send(history, "What breed?", image)

        kwargs = session.post.call_args.kwargs
        assert kwargs["data"] == {
            "message": "What breed?",
            "messages[0][role]": "user",
            "messages[0][content]": IMAGE_PLACEHOLDER,
            "messages[1][role]": "assistant",
            "messages[1][content]": "A cat",
        }
        assert kwargs["files"] == {"image": ("cat.png", image.data, "image/png")}


class TestSendFailures:

    def test_non_2xx(self, chat_client, session):
        session.post.return_value = _response(status=500, body={"error": "Server error"})
        with pytest.raises(ChatClientError):
            chat_client.send([], "Hello")

    def test_connection_error(self, chat_client, session):
        session.post.side_effect = requests.ConnectionError("refused")
        with pytest.raises(ChatClientError):
            chat_client.send([], "Hello")

    def test_invalid_json(self, chat_client, session):
        resp = _response()
        resp.json.side_effect = ValueError("not json")
        session.post.return_value = resp
        with pytest.raises(ChatClientError):
            chat_client.send([], "Hello")

    def test_missing_reply(self, chat_client, session):
        session.post.return_value = _response(body={"answer": "??"})
        with pytest.raises(ChatClientError):
            chat_client.send([], "Hello")

    def test_store_renders_failure_as_turn(self, chat_client, session):
        session.post.side_effect = requests.Timeout("slow")
        store = ConversationStore()
        store.submit("Hello", None, chat_client.send)
        assert store.turns[-1].content == ERROR_REPLY


class TestHealth:

    def test_healthy(self, chat_client, session):
        session.get.return_value = _response(body={"ok": True})
        assert chat_client.is_healthy()

    def test_offline(self, chat_client, session):
        session.get.side_effect = requests.ConnectionError()
        assert not chat_client.is_healthy()
