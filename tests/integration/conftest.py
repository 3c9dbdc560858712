"""Fixtures for integration tests.

These tests drive a real headless browser against pages served from
tests/integration/pages. They are skipped when the browser binaries are
not installed.
"""

from collections.abc import AsyncIterator, Iterator
from pathlib import Path

import pytest
import pytest_asyncio

from tests.integration.server import PageServer, get_free_port
from uiscript.core.browser import PlaywrightDriver
from uiscript.utils.config import AppConfig
from uiscript.utils.exceptions import DriverLaunchError

PAGES_DIR = Path(__file__).parent / "pages"


@pytest.fixture
def page_server() -> Iterator[PageServer]:
    """Serve the test pages for the duration of a test."""
    server = PageServer(PAGES_DIR, port=get_free_port())
    server.start()
    yield server
    server.stop()


@pytest.fixture
def browser_config(tmp_path: Path) -> AppConfig:
    """Headless configuration with short waits."""
    return AppConfig(
        output_dir=tmp_path / "output",
        headless=True,
        command_delay=0.0,
        type_settle_delay=0.1,
        locate_backoff=(0.0, 0.5),
        page_timeout=5000,
    )


@pytest_asyncio.fixture
async def browser_driver(browser_config: AppConfig) -> AsyncIterator[PlaywrightDriver]:
    """A launched headless Playwright driver."""
    driver = PlaywrightDriver.from_config(browser_config)
    try:
        await driver.launch()
    except DriverLaunchError as e:
        pytest.skip(str(e))
    yield driver
    await driver.close()
