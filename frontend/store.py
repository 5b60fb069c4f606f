"""Client-side conversation state.

Holds the session's turns in memory and drives one send at a time through
IDLE -> SENDING -> IDLE. Has no Streamlit dependency so it can be tested
without rendering.
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

ERROR_REPLY = "Er ging iets mis. Probeer opnieuw."


class StoreState(Enum):
    IDLE = "idle"
    SENDING = "sending"


@dataclass(frozen=True)
class AttachedImage:
    """Image picked by the user for the next message."""
    name: str
    mime_type: str
    data: bytes


@dataclass(frozen=True)
class Turn:
    role: str  # "user" or "assistant"
    content: str
    image: AttachedImage | None = None


SendFn = Callable[[list[Turn], str, AttachedImage | None], str]


class ConversationStore:
    """Append-only list of turns plus the pending-send state machine."""

    def __init__(self):
        self._turns: list[Turn] = []
        self.state = StoreState.IDLE

    @property
    def turns(self) -> tuple[Turn, ...]:
        return tuple(self._turns)

    @property
    def is_sending(self) -> bool:
        return self.state is StoreState.SENDING

    def can_submit(self, text: str, image: AttachedImage | None) -> bool:
        """Input is accepted only while idle and when there is text or an image."""
        if self.is_sending:
            return False
        return bool((text or "").strip()) or image is not None

    def submit(
        self,
        text: str,
        image: AttachedImage | None,
        send: SendFn,
        on_sending: Callable[[Turn], None] | None = None,
    ) -> bool:
        """Run one send cycle.

        The user turn is appended before `send` is called. On success the
        reply is appended as an assistant turn; any failure appends
        ERROR_REPLY instead, including failures of the `on_sending` hook.
        Exceptions are never re-raised; only non-Exception control flow
        (BaseException) propagates, after the store is back to IDLE.

        Args:
            text: Raw input text (trimmed here).
            image: Optional attached image.
            send: Callable (history, text, image) -> reply text. `history`
                excludes the new user turn.
            on_sending: Hook called with the new user turn once it has been
                appended, before the network call.

        Returns:
            False if the submit was a no-op, True otherwise.
        """
        if not self.can_submit(text, image):
            return False

        text = (text or "").strip()
        history = list(self._turns)
        user_turn = Turn(role="user", content=text, image=image)
        self._turns.append(user_turn)
        self.state = StoreState.SENDING
        reply = None

        try:
            if on_sending is not None:
                on_sending(user_turn)
            reply = send(history, text, image)
        except Exception:
            reply = None
        finally:
            # Also reached on BaseException (e.g. UI control flow), which is re-raised.
            self._turns.append(Turn(role="assistant", content=ERROR_REPLY if reply is None else reply))
            self.state = StoreState.IDLE
        return True

    def reset(self) -> None:
        """Start a new conversation. Only allowed while idle."""
        if self.is_sending:
            return
        self._turns = []
