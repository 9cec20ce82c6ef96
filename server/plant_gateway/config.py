# config.py
import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

_DEFAULT_STATIC = Path(__file__).resolve().parents[1] / "public"


@lru_cache(maxsize=1)
def get_config():
    """
    Centralised config loader, environment variables only
    (a local .env is loaded first if present).
    """
    env = os.environ
    return {
        "GEMINI_API_KEY": env.get("GEMINI_API_KEY", ""),
        "GEMINI_MODEL": env.get("GEMINI_MODEL", "gemini-1.5-pro"),
        "PORT": int(env.get("PORT") or 3000),
        "STATIC_DIR": Path(env.get("STATIC_DIR") or _DEFAULT_STATIC),
        "LOG_LEVEL": env.get("LOG_LEVEL", "INFO").upper(),
    }
