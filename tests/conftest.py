"""
Shared pytest configuration.

The API module builds its FastAPI app at import time, so the environment
it validates is pinned here before any test module imports it.
"""

from __future__ import annotations

import os
import tempfile

os.environ["LLM_ADAPTER"] = "mock"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ.setdefault("REPORTS_DIR", tempfile.mkdtemp(prefix="sla-reports-"))
