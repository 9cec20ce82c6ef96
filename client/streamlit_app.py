# streamlit_app.py
import io
import logging

from PIL import Image

import streamlit as st
import streamlit.components.v1 as components

from plant_ui.api import post_diagnosis
from plant_ui.config import get_config
from plant_ui.formatting import format_message, to_html
from plant_ui.session import ChatSession

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

st.set_page_config(page_title="Plant Doctor", page_icon="🌿", layout="wide")

_CFG = get_config()
API_BASE = _CFG["API_BASE"]

# ---------------- state ----------------
if "chat" not in st.session_state:
    st.session_state["chat"] = ChatSession()
chat: ChatSession = st.session_state["chat"]

# draft can only be reset before its widget is drawn
if st.session_state.pop("_clear_draft", False):
    st.session_state["draft"] = chat.draft


def _on_submit():
    chat.update_draft(st.session_state.get("draft", ""))
    chat.begin_submit()


def _image_caption(data: bytes) -> str:
    try:
        im = Image.open(io.BytesIO(data))
        return f"{im.format or 'image'} · {im.width}×{im.height}"
    except Exception:
        return "Preview unavailable for this file"


def _scroll_to_latest(n_messages: int):
    components.html(
        f"""
        <script>
        // {n_messages}
        const end = window.parent.document.getElementById("chat-end");
        if (end) {{ end.scrollIntoView({{behavior: "smooth", block: "end"}}); }}
        </script>
        """,
        height=0,
    )


# ---------------- UI ----------------
st.markdown(
    "<h1 style='text-align:center;color:#4ade80;font-size:1.6rem;margin-bottom:1.2rem;'>Plant Doctor</h1>",
    unsafe_allow_html=True,
)

with st.sidebar:
    st.markdown("### Settings")
    st.text_input("API Base (read-only)", API_BASE, disabled=True)
    st.markdown(
        "<div style='padding:.6rem;border:1px solid #666;border-radius:6px;'>"
        "<b>Note:</b> answers come from a general-purpose model and can be wrong. "
        "Nothing is stored; reloading the page clears the conversation.</div>",
        unsafe_allow_html=True
    )

col_chat, col_img = st.columns([0.7, 0.3], gap="large")

with col_img:
    with st.container(border=True):
        if chat.selected_image is not None:
            st.markdown(
                f"<img src='{chat.selected_image.preview}' alt='Plant Preview' "
                "style='width:100%;height:256px;object-fit:cover;border-radius:.5rem;'/>",
                unsafe_allow_html=True,
            )
            st.caption(_image_caption(chat.selected_image.data))
        else:
            st.markdown(
                "<div style='width:100%;height:256px;background:#404040;border-radius:.5rem;"
                "display:flex;align-items:center;justify-content:center;color:#888;'>"
                "No image uploaded</div>",
                unsafe_allow_html=True,
            )
        uploaded = st.file_uploader("Upload Image", type=["png", "jpg", "jpeg", "webp", "gif", "bmp"],
                                    key="image_picker")
        # a cleared picker keeps the last image; only a new file replaces it
        if uploaded is not None and st.session_state.get("_image_id") != uploaded.file_id:
            chat.select_image(uploaded.name, uploaded.getvalue(), uploaded.type or "application/octet-stream")
            st.session_state["_image_id"] = uploaded.file_id
            st.rerun()

with col_chat:
    with st.container(height=600, border=True):
        for msg in chat.conversation:
            with st.chat_message(msg.role):
                if msg.role == "assistant":
                    st.markdown(to_html(format_message(msg.text)), unsafe_allow_html=True)
                else:
                    st.text(msg.text)
        st.markdown("<div id='chat-end'></div>", unsafe_allow_html=True)

    with st.form("composer", border=False):
        c_input, c_btn = st.columns([0.85, 0.15])
        with c_input:
            st.text_input("Message", key="draft", label_visibility="collapsed",
                          placeholder="Describe the issue with your plant...")
        with c_btn:
            st.form_submit_button("Sending..." if chat.busy else "Send", key="send",
                                  disabled=chat.busy, on_click=_on_submit)

if st.session_state.get("_seen_messages") != len(chat.conversation):
    st.session_state["_seen_messages"] = len(chat.conversation)
    _scroll_to_latest(len(chat.conversation))

# second phase of a submission: the user message is already on screen
if chat.pending is not None:
    with st.spinner("Sending..."):
        chat.resolve(post_diagnosis)
        st.session_state["_clear_draft"] = True
    st.rerun()
