"""
Pytest fixtures for web PDF service tests.
"""

import os
from unittest.mock import AsyncMock, MagicMock

# Set environment variables BEFORE any imports from webpdf_service so the
# cached settings are built from test values.
os.environ["LOG_LEVEL"] = "INFO"
os.environ["GHOSTSCRIPT_COMMAND"] = "gs"
os.environ.pop("APPLICATIONINSIGHTS_CONNECTION_STRING", None)
os.environ.pop("MAX_CONCURRENT_RENDERS", None)
os.environ.pop("COMPRESSION_TIMEOUT_SECONDS", None)

import pytest
from fastapi.testclient import TestClient

from webpdf_service.browser import BrowserManager


@pytest.fixture
def mock_page():
    """Playwright page double with a context that tracks cookies and closing."""
    page = MagicMock()
    page.goto = AsyncMock()
    page.wait_for_selector = AsyncMock()
    page.pdf = AsyncMock(return_value=b"%PDF-1.4 fake pdf content")
    page.route = AsyncMock()
    page.close = AsyncMock()
    page.set_default_timeout = MagicMock()

    context = MagicMock()
    context.new_page = AsyncMock(return_value=page)
    context.add_cookies = AsyncMock()
    context.close = AsyncMock()
    page.context = context
    return page


@pytest.fixture
def browser_manager(mock_page):
    """BrowserManager whose Chromium instance is replaced by a mock."""
    manager = BrowserManager(headless=True)
    mock_browser = MagicMock()
    mock_browser.is_connected.return_value = True
    mock_browser.new_context = AsyncMock(return_value=mock_page.context)
    mock_browser.close = AsyncMock()
    manager._browser = mock_browser
    return manager


@pytest.fixture
def client(browser_manager):
    """Test client with the browser dependency overridden (startup hook not run)."""
    from webpdf_service.app import app, get_browser_manager

    app.dependency_overrides[get_browser_manager] = lambda: browser_manager
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def mock_gs_process():
    """Ghostscript process double that exits successfully."""
    process = MagicMock()
    process.returncode = 0
    process.communicate = AsyncMock(return_value=(b"%PDF-1.4 compressed", b""))
    process.kill = MagicMock()
    process.wait = AsyncMock(return_value=0)
    return process
