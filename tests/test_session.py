"""Tests for the client conversation state machine."""

import logging
from typing import List, Tuple

import pytest

from plant_ui.session import (
    FAILURE_TEXT,
    UPLOAD_FIRST_TEXT,
    ChatSession,
    Message,
    SelectedImage,
)


class RecordingSend:
    def __init__(self, reply: str = "Water more often", error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.calls: List[Tuple[SelectedImage, str]] = []

    def __call__(self, image: SelectedImage, message: str) -> str:
        self.calls.append((image, message))
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def session() -> ChatSession:
    s = ChatSession()
    s.select_image("leaf.jpg", b"\xff\xd8leaf", "image/jpeg")
    return s


class TestSubmitGuards:
    @pytest.mark.parametrize("draft", ["", " ", "\n", "\t  \n "])
    def test_blank_draft_is_noop(self, session: ChatSession, draft: str) -> None:
        send = RecordingSend()
        session.update_draft(draft)

        assert session.submit(send) is None
        assert session.conversation == []
        assert send.calls == []
        assert session.busy is False

    @pytest.mark.parametrize("history", [
        [],
        [Message("user", "earlier"), Message("assistant", "earlier reply")],
    ])
    def test_no_image_appends_guidance_only(self, history: List[Message]) -> None:
        session = ChatSession(conversation=list(history))
        send = RecordingSend()
        session.update_draft("My basil is wilting")

        session.submit(send)

        assert session.conversation == history + [Message("assistant", UPLOAD_FIRST_TEXT)]
        assert send.calls == []
        assert session.busy is False

    def test_second_submit_rejected_while_busy(self, session: ChatSession) -> None:
        session.update_draft("first")
        first = session.begin_submit()
        session.update_draft("second")
        second = session.begin_submit()

        assert first is not None
        assert second is None
        assert session.busy is True
        assert [m.text for m in session.conversation] == ["first"]

        send = RecordingSend()
        session.resolve(send)
        assert [c[1] for c in send.calls] == ["first"]

    def test_resolve_without_pending_request(self) -> None:
        with pytest.raises(RuntimeError):
            ChatSession().resolve(RecordingSend())


class TestSubmitOutcomes:
    def test_success_appends_user_then_reply(self, session: ChatSession) -> None:
        send = RecordingSend(reply="Water more often")
        session.update_draft("  Leaves are drooping  ")

        reply = session.submit(send)

        assert session.conversation == [
            Message("user", "  Leaves are drooping  "),
            Message("assistant", "Water more often"),
        ]
        assert reply == Message("assistant", "Water more often")
        assert send.calls == [(session.selected_image, "  Leaves are drooping  ")]

    def test_failure_appends_fixed_text_and_logs_detail(
        self, session: ChatSession, caplog: pytest.LogCaptureFixture
    ) -> None:
        send = RecordingSend(error=ConnectionError("gateway down at 10.0.0.7"))
        session.update_draft("Spots on leaves")

        with caplog.at_level(logging.ERROR, logger="plant_ui.session"):
            session.submit(send)

        assert session.conversation == [
            Message("user", "Spots on leaves"),
            Message("assistant", FAILURE_TEXT),
        ]
        assert "gateway down" not in FAILURE_TEXT
        assert "gateway down at 10.0.0.7" in caplog.text

    @pytest.mark.parametrize("error", [None, ValueError("bad body")])
    def test_terminal_state_reset(self, session: ChatSession, error) -> None:
        image = session.selected_image
        session.update_draft("question")

        session.submit(RecordingSend(error=error))

        assert session.busy is False
        assert session.draft == ""
        assert session.pending is None
        assert session.selected_image is image

    def test_image_is_reused_across_turns(self, session: ChatSession) -> None:
        send = RecordingSend()
        for text in ("one", "two"):
            session.update_draft(text)
            session.submit(send)

        assert [c[0] for c in send.calls] == [session.selected_image, session.selected_image]

    def test_new_selection_replaces_image(self, session: ChatSession) -> None:
        send = RecordingSend()
        session.select_image("rose.png", b"\x89PNG", "image/png")
        session.update_draft("and this one?")

        session.submit(send)

        assert send.calls[0][0].name == "rose.png"

    def test_history_is_append_only(self, session: ChatSession) -> None:
        send = RecordingSend()
        session.update_draft("one")
        session.submit(send)
        before = list(session.conversation)

        session.update_draft("two")
        session.submit(RecordingSend(error=RuntimeError("x")))

        assert session.conversation[: len(before)] == before
        assert len(session.conversation) == len(before) + 2


class TestSelectedImage:
    def test_preview_is_data_uri(self) -> None:
        image = SelectedImage(name="a.png", data=b"abc", mime_type="image/png")

        assert image.preview == "data:image/png;base64,YWJj"

    def test_any_file_type_is_stored(self) -> None:
        session = ChatSession()
        image = session.select_image("notes.txt", b"hello", "text/plain")

        assert session.selected_image is image
        assert image.mime_type == "text/plain"
