from unittest.mock import AsyncMock, MagicMock

import pytest

from facetqa.actions.locator import ElementLocator
from facetqa.browser.config import EngineConfig
from facetqa.browser.selectors import PageSelectors


@pytest.fixture
def selectors() -> PageSelectors:
    return PageSelectors()


@pytest.fixture
def mock_page():
    """Playwright page double; query methods find nothing by default."""
    page = MagicMock()
    page.url = "https://www.douglas.de/de/c/parfum/01"
    page.query_selector = AsyncMock(return_value=None)
    page.query_selector_all = AsyncMock(return_value=[])
    page.goto = AsyncMock()
    page.reload = AsyncMock()
    page.screenshot = AsyncMock(return_value=b"png")
    return page


@pytest.fixture
def mock_locator(mock_page):
    """ElementLocator double with every coroutine method mocked."""
    locator = AsyncMock(spec=ElementLocator)
    locator.page = mock_page
    locator.timeout = 10
    return locator


@pytest.fixture
def engine_config() -> EngineConfig:
    return EngineConfig(url="https://www.douglas.de/de", retries=2, test_retries=1, max_concurrent_tests=2)
