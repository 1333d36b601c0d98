"""Test setup shared by every SlipTalk package.

Loads `.env.tests`, which blanks GEMINI_API_KEY so no test reaches the real
generation API, and installs the server's structlog processor chain so store
and generator events show up in `caplog`.
"""

from pathlib import Path

import pytest
import structlog
from dotenv import load_dotenv

from shared.logging import event_processors

load_dotenv(Path(__file__).resolve().parent.parent / ".env.tests")

structlog.configure(
    processors=event_processors(),
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=False,
)


@pytest.fixture(autouse=True)
def _clear_log_context():
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()
