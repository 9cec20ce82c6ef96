import os
import logging
import tempfile
import mimetypes
from contextlib import contextmanager
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterator, Optional, Protocol

import google.generativeai as genai

from .config import get_config
from .errors import UpstreamError

logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTION = "You are a plant doctor who sees the image and gives a solution."

# Sent with every exchange, not user configurable.
GENERATION_CONFIG = {
    "temperature": 1,
    "top_p": 0.95,
    "top_k": 40,
    "max_output_tokens": 8192,
    "response_mime_type": "text/plain",
}


@dataclass(frozen=True)
class ImagePayload:
    data: bytes
    mime_type: str
    filename: Optional[str] = None


class DiagnosisProvider(Protocol):
    def diagnose(self, image: ImagePayload, message: str) -> str: ...


# ---------- Utilities ----------
def _suffix_for(image: ImagePayload) -> str:
    ext = os.path.splitext(image.filename or "")[1]
    if ext:
        return ext
    return mimetypes.guess_extension(image.mime_type or "") or ""


@contextmanager
def staged_image(image: ImagePayload) -> Iterator[str]:
    """
    Write the upload to its own temporary file for the provider SDK,
    then remove it whatever happens downstream.
    """
    tmp_path = None
    try:
        with tempfile.NamedTemporaryFile(delete=False, prefix="plant-", suffix=_suffix_for(image)) as tf:
            tf.write(image.data)
            tf.flush()
            tmp_path = tf.name
        yield tmp_path
    finally:
        if tmp_path and os.path.exists(tmp_path):
            try:
                os.remove(tmp_path)
            except OSError:
                logger.warning("Could not remove staged upload %s", tmp_path, exc_info=True)


# ---------- Gemini ----------
class GeminiProvider:
    """Upload the image, run one chat turn seeded with it, return the reply text."""

    def __init__(self, api_key: str, model_name: str = "gemini-1.5-pro"):
        self.api_key = api_key
        self.model_name = model_name
        if api_key:
            genai.configure(api_key=api_key)

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _upload(self, path: str, mime_type: str):
        uploaded = genai.upload_file(path, mime_type=mime_type, display_name=path)
        logger.info("Uploaded file %s as: %s", uploaded.display_name, uploaded.name)
        return uploaded

    def diagnose(self, image: ImagePayload, message: str) -> str:
        if not self.configured:
            raise UpstreamError("GEMINI_API_KEY is not configured.")

        with staged_image(image) as path:
            try:
                uploaded = self._upload(path, image.mime_type)
                model = genai.GenerativeModel(
                    model_name=self.model_name,
                    generation_config=GENERATION_CONFIG,
                    system_instruction=SYSTEM_INSTRUCTION,
                )
                chat = model.start_chat(history=[
                    {"role": "user", "parts": [uploaded, message]},
                ])
                response = chat.send_message(message)
                # .text raises ValueError when the candidate has no text part
                solution = response.text
            except Exception as e:
                raise UpstreamError(f"Gemini exchange failed: {e}") from e

        if not isinstance(solution, str) or not solution.strip():
            raise UpstreamError("Gemini returned an empty completion.")
        logger.debug("Received solution from model: %s", solution)
        return solution


@lru_cache(maxsize=1)
def get_provider() -> DiagnosisProvider:
    cfg = get_config()
    return GeminiProvider(api_key=cfg["GEMINI_API_KEY"], model_name=cfg["GEMINI_MODEL"])
