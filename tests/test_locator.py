"""
Unit tests for ElementLocator and SessionNavigator.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import Error as PlaywrightError

from facetqa.actions.errors import (ElementNotFoundError, InteractionFailure,
                                    StaleElementError, WaitTimeout)
from facetqa.actions.locator import ElementLocator
from facetqa.actions.retry import RetryBudget
from facetqa.actions.session_navigator import SessionNavigator


@pytest.fixture
def locator(mock_page):
    return ElementLocator(mock_page, timeout=0.2, poll_interval=0.01)


class TestElementLocator:
    @pytest.mark.asyncio
    async def test_locate_missing_raises_not_found(self, locator):
        with pytest.raises(ElementNotFoundError):
            await locator.locate(".product-tile")

    @pytest.mark.asyncio
    async def test_detached_handle_is_stale(self, locator):
        handle = MagicMock()
        handle.inner_text = AsyncMock(side_effect=PlaywrightError("Element is not attached to the DOM"))

        with pytest.raises(StaleElementError):
            await locator.text_of(handle)

    @pytest.mark.asyncio
    async def test_wait_until_treats_transient_errors_as_not_yet(self, locator):
        condition = AsyncMock(side_effect=[ElementNotFoundError("x"), None, "ready"])

        assert await locator.wait_until(condition) == "ready"
        assert condition.await_count == 3

    @pytest.mark.asyncio
    async def test_wait_until_times_out(self, locator):
        with pytest.raises(WaitTimeout):
            await locator.wait_until(AsyncMock(return_value=False), timeout=0.05)

    @pytest.mark.asyncio
    async def test_wait_until_propagates_other_errors(self, locator):
        with pytest.raises(KeyError):
            await locator.wait_until(AsyncMock(side_effect=KeyError("boom")))

    @pytest.mark.asyncio
    async def test_wait_for_count_above(self, locator, mock_page):
        tiles = [MagicMock(), MagicMock()]
        mock_page.query_selector_all.side_effect = [[], tiles]

        assert await locator.wait_for_count_above(".product-tile", 0) == tiles


class TestSessionNavigator:
    @pytest.mark.asyncio
    async def test_enter_dismisses_overlay_then_reloads(self, mock_locator, selectors):
        await SessionNavigator(mock_locator, selectors).enter("https://www.douglas.de/de", RetryBudget(2))

        mock_locator.goto.assert_awaited_once_with("https://www.douglas.de/de")
        mock_locator.click.assert_awaited_once()
        mock_locator.reload.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_enter_blocked_session_is_fatal(self, mock_locator, selectors):
        mock_locator.wait_until.side_effect = WaitTimeout("no overlay")

        with pytest.raises(InteractionFailure, match="ACCESS DENIED"):
            await SessionNavigator(mock_locator, selectors).enter("https://www.douglas.de/de", RetryBudget(2))

        assert mock_locator.wait_until.await_count == 3
        # only the recovery reloads ran
        assert mock_locator.reload.await_count == 2

    @pytest.mark.asyncio
    async def test_enter_repeats_timed_out_navigation(self, mock_locator, selectors):
        mock_locator.goto.side_effect = [WaitTimeout("page.goto: Timeout 60000ms exceeded"), None]

        await SessionNavigator(mock_locator, selectors).enter("https://www.douglas.de/de", RetryBudget(2))

        assert mock_locator.goto.await_count == 2
        mock_locator.click.assert_awaited_once()
        # only the reload after the dismissal
        mock_locator.reload.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_enter_unreachable_page_is_fatal(self, mock_locator, selectors):
        mock_locator.goto.side_effect = WaitTimeout("page.goto: Timeout 60000ms exceeded")

        with pytest.raises(InteractionFailure, match="ACCESS DENIED"):
            await SessionNavigator(mock_locator, selectors).enter("https://www.douglas.de/de", RetryBudget(2))

        assert mock_locator.goto.await_count == 3
        mock_locator.wait_until.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_enter_survives_failed_final_reload(self, mock_locator, selectors):
        mock_locator.reload.side_effect = WaitTimeout("page.reload: Timeout 60000ms exceeded")

        await SessionNavigator(mock_locator, selectors).enter("https://www.douglas.de/de", RetryBudget(2))

        mock_locator.click.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_goto_listing_retries_with_reload(self, mock_locator, selectors):
        mock_locator.wait_for_clickable.side_effect = [WaitTimeout("menu not ready"), MagicMock()]

        await SessionNavigator(mock_locator, selectors).goto_listing(RetryBudget(1))

        mock_locator.reload.assert_awaited_once()
        mock_locator.hover_and_click.assert_awaited_once()
