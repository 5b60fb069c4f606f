"""FreeGPT - Streamlit Chat Interface.

Thin client for the chat proxy backend. All conversation state lives in
ConversationStore (frontend/store.py); this file handles:
  - Session state setup
  - Rendering turns and the optional image preview
  - Collecting input and clearing it as soon as a message is submitted
"""

import streamlit as st

from frontend.client import API_BASE, ChatClient
from frontend.store import AttachedImage, ConversationStore, Turn

ROLE_LABELS = {"user": "Jij", "assistant": "Assistent"}

st.set_page_config(
    page_title="lololo - Chat",
    layout="centered",
)


def init_session():
    """Initialize session state on first load."""
    if "store" not in st.session_state:
        st.session_state.store = ConversationStore()
    if "client" not in st.session_state:
        st.session_state.client = ChatClient(API_BASE)
    if "draft" not in st.session_state:
        st.session_state.draft = ""
    if "uploader_nonce" not in st.session_state:
        st.session_state.uploader_nonce = 0
    if "pending" not in st.session_state:
        st.session_state.pending = None


def _uploader_key() -> str:
    # A new key gives a fresh, empty uploader, which clears the preview.
    return f"image_{st.session_state.uploader_nonce}"


def _current_image() -> AttachedImage | None:
    upload = st.session_state.get(_uploader_key())
    if upload is None:
        return None
    return AttachedImage(name=upload.name, mime_type=upload.type or "", data=upload.getvalue())


def render_turn(turn: Turn):
    """Render a single turn with its optional image."""
    with st.chat_message(turn.role):
        st.caption(ROLE_LABELS.get(turn.role, turn.role))
        if turn.image is not None:
            st.image(turn.image.data, width=240)
        if turn.content:
            st.markdown(turn.content)


def on_submit():
    """Queue the current input and clear the input widgets immediately."""
    ss = st.session_state
    image = _current_image()
    if not ss.store.can_submit(ss.draft, image):
        return
    ss.pending = (ss.draft, image)
    ss.draft = ""
    ss.uploader_nonce += 1


def send_pending():
    """Run the queued send through the store, showing a thinking indicator."""
    text, image = st.session_state.pending
    st.session_state.pending = None
    store: ConversationStore = st.session_state.store
    client: ChatClient = st.session_state.client

    with st.spinner("Denken…"):
        store.submit(text, image, client.send, on_sending=render_turn)
    st.rerun()


def main():
    """Run the Streamlit chat application."""
    init_session()
    store: ConversationStore = st.session_state.store

    st.title("lololo — Chat")

    with st.sidebar:
        if st.session_state.client.is_healthy():
            st.success("API online")
        else:
            st.warning("API offline")
        if st.button("Nieuw gesprek", use_container_width=True, disabled=store.is_sending):
            store.reset()
            st.rerun()

    if not store.turns and st.session_state.pending is None:
        st.caption("Stel je vraag aan de assistent…")
    for turn in store.turns:
        render_turn(turn)

    if st.session_state.pending is not None:
        send_pending()

    st.text_input("Bericht", key="draft", placeholder="Typ een bericht")
    st.file_uploader("Afbeelding", type=["png", "jpg", "jpeg", "gif", "webp"], key=_uploader_key())
    preview = _current_image()
    if preview is not None:
        st.image(preview.data, caption=preview.name, width=160)

    st.button(
        "Verstuur",
        key="send",
        type="primary",
        on_click=on_submit,
        disabled=not store.can_submit(st.session_state.draft, preview),
    )


if __name__ == "__main__":
    main()
