"""
Pytest configuration and fixtures for the test suite.

Provider credentials are scrubbed so no test can reach the real Gemini API,
and the client is pointed at a gateway address that does not exist.
"""

import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
for sub in ("server", "client"):
    if str(ROOT / sub) not in sys.path:
        sys.path.insert(0, str(ROOT / sub))

# Must happen before plant_gateway / plant_ui read their cached config
os.environ["GEMINI_API_KEY"] = ""
os.environ["API_BASE"] = "http://gateway.test"
os.environ.pop("REQUEST_TIMEOUT", None)
