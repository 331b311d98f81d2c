"""Root conftest: test settings must be in the environment before wa_dispatch.config is imported."""
from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv

# Real environment variables win, so CI can point the suite elsewhere.
load_dotenv(Path(__file__).resolve().parent / ".env.test", override=False)
