import requests

from .config import get_config
from .session import SelectedImage


class TransportError(Exception):
    """Gateway unreachable, non-2xx answer, or a body without a text solution."""


def post_diagnosis(image: SelectedImage, message: str, url: str | None = None) -> str:
    cfg = get_config()
    url = url or cfg["API_DIAGNOSE"]
    files = {"image": (image.name, image.data, image.mime_type)}
    try:
        r = requests.post(url, files=files, data={"message": message}, timeout=cfg["REQUEST_TIMEOUT"])
        r.raise_for_status()
        body = r.json()
    except requests.RequestException as e:
        raise TransportError(f"Request to {url} failed: {e}") from e
    except ValueError as e:
        raise TransportError(f"Gateway returned non-JSON body: {e}") from e

    solution = body.get("solution") if isinstance(body, dict) else None
    if not isinstance(solution, str):
        raise TransportError(f"Gateway response has no solution text: {body!r}")
    return solution
