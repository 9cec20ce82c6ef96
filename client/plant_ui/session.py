"""Conversation state for one browser session.

The transcript is append-only. A submission is split in two phases so the
page can redraw between them: ``begin_submit`` appends the user message and
raises the busy gate, ``resolve`` performs the call and appends exactly one
assistant message. ``submit`` runs both back to back.
"""
import base64
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Literal, Optional

logger = logging.getLogger(__name__)

UPLOAD_FIRST_TEXT = "Please upload an image first."
FAILURE_TEXT = "Sorry, I encountered an error. Please try again."

Role = Literal["user", "assistant"]


@dataclass(frozen=True)
class Message:
    role: Role
    text: str


@dataclass(frozen=True)
class SelectedImage:
    name: str
    data: bytes
    mime_type: str

    @property
    def preview(self) -> str:
        """data: URI of the image, usable directly as an <img> source."""
        return f"data:{self.mime_type};base64,{base64.b64encode(self.data).decode()}"


@dataclass(frozen=True)
class PendingRequest:
    image: SelectedImage
    message: str


SendFn = Callable[[SelectedImage, str], str]


@dataclass
class ChatSession:
    selected_image: Optional[SelectedImage] = None
    draft: str = ""
    busy: bool = False
    conversation: List[Message] = field(default_factory=list)
    pending: Optional[PendingRequest] = None

    def select_image(self, name: str, data: bytes, mime_type: str) -> SelectedImage:
        # no validation: whatever the picker let through is kept as-is
        self.selected_image = SelectedImage(name=name, data=data, mime_type=mime_type)
        return self.selected_image

    def update_draft(self, text: str) -> None:
        self.draft = text

    def _append(self, role: Role, text: str) -> Message:
        msg = Message(role=role, text=text)
        self.conversation.append(msg)
        return msg

    def begin_submit(self) -> Optional[PendingRequest]:
        """Start a submission. Returns None when nothing has to be sent."""
        if self.busy:
            logger.debug("Submit rejected, a request is already in flight")
            return None
        if not self.draft.strip():
            return None
        if self.selected_image is None:
            self._append("assistant", UPLOAD_FIRST_TEXT)
            return None

        self._append("user", self.draft)
        self.busy = True
        self.pending = PendingRequest(image=self.selected_image, message=self.draft)
        return self.pending

    def resolve(self, send: SendFn) -> Message:
        """Run the pending request through ``send`` and record its outcome."""
        if self.pending is None:
            raise RuntimeError("resolve() called without a pending request")
        request = self.pending
        try:
            reply = self._append("assistant", send(request.image, request.message))
        except Exception:
            logger.exception("Diagnosis request failed")
            reply = self._append("assistant", FAILURE_TEXT)
        finally:
            self.busy = False
            self.pending = None
            self.draft = ""
        return reply

    def submit(self, send: SendFn) -> Optional[Message]:
        if self.begin_submit() is None:
            return None
        return self.resolve(send)
