"""Shared pytest fixtures for uiscript tests.

This module provides common fixtures used across unit and integration tests.
Fixtures include a zero-delay config, a sample fake page and a factory for
interpreters running against the fake driver.
"""

from collections.abc import Callable
from pathlib import Path

import pytest

from tests.fakes import FakeDriver, FakeElement, el
from uiscript.core.engine import compile_script
from uiscript.core.interpreter import Interpreter
from uiscript.utils.config import AppConfig


@pytest.fixture
def app_config(tmp_path: Path) -> AppConfig:
    """Test configuration.

    Creates an AppConfig with every delay set to zero and a single locate
    attempt, so failing locates return immediately.

    Args:
        tmp_path: Pytest fixture providing a temporary directory.

    Returns:
        AppConfig: A configuration object for testing.
    """
    return AppConfig(
        output_dir=tmp_path / "output",
        command_delay=0.0,
        type_settle_delay=0.0,
        locate_backoff=(0.0,),
    )


@pytest.fixture
def login_page() -> FakeElement:
    """A small login page.

    Returns:
        FakeElement: The html root of the page.
    """
    return el(
        "html",
        "",
        el(
            "body",
            "",
            el("h1", "Welcome"),
            el(
                "form",
                "",
                el("label", "Username", for_="user"),
                el("input", id="user", name="username", placeholder="Enter username"),
                el("label", "Password"),
                el("input", type="password", name="password"),
                el("button", "Log In", id="submit", class_="btn primary"),
                id="login",
            ),
            el("a", "Forgot password?", title="Reset your password"),
        ),
    )


@pytest.fixture
def fake_driver(login_page: FakeElement) -> FakeDriver:
    """Fake driver over the login page."""
    return FakeDriver(login_page)


@pytest.fixture
def make_interpreter(
    app_config: AppConfig,
) -> Callable[[str, FakeDriver], Interpreter]:
    """Factory compiling a script into an interpreter over a fake driver.

    Returns:
        A callable taking script source and a driver.
    """

    def factory(source: str, driver: FakeDriver) -> Interpreter:
        return Interpreter(driver, compile_script(source), app_config, "test")

    return factory
