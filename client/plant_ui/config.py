# config.py
import os
from functools import lru_cache

from dotenv import load_dotenv

try:
    import streamlit as st
    _HAS_ST = True
except ImportError:
    _HAS_ST = False

load_dotenv()

DEFAULT_API_BASE = "http://localhost:3000"


def _secrets():
    if not _HAS_ST:
        return {}
    try:
        # st.secrets raises when no secrets.toml exists
        return dict(st.secrets)
    except Exception:
        return {}


@lru_cache(maxsize=1)
def get_config():
    """
    Centralised config loader:
      1) Environment variables
      2) Streamlit secrets (if running in Streamlit)
    """
    env = os.environ
    secrets = _secrets()

    api_base = (env.get("API_BASE") or secrets.get("API_BASE") or DEFAULT_API_BASE).rstrip("/")
    timeout = env.get("REQUEST_TIMEOUT") or secrets.get("REQUEST_TIMEOUT")

    return {
        "API_BASE": api_base,
        "API_DIAGNOSE": f"{api_base}/api/plant-diagnosis",
        "REQUEST_TIMEOUT": float(timeout) if timeout else None,
    }
