import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, TypeVar

from playwright.async_api import ElementHandle, Page
from playwright.async_api import Error as PlaywrightError

from facetqa.actions.errors import (ElementNotFoundError, WaitTimeout,
                                    is_transient, translate_playwright_error)

T = TypeVar("T")


class ElementLocator:
    """Resolves selectors against the live page and waits on page state.

    Handles returned here are only guaranteed attached at the moment they are
    returned. Any later call on them may fail with StaleElementError, which
    callers treat as transient and answer by locating again.
    """

    DEFAULT_POLL_INTERVAL = 0.25

    def __init__(self, page: Page, timeout: float = 10, poll_interval: float = DEFAULT_POLL_INTERVAL):
        self.page = page
        self.timeout = timeout
        self.poll_interval = poll_interval

    async def _call(self, awaitable: Awaitable[T]) -> T:
        try:
            return await awaitable
        except PlaywrightError as e:
            translated = translate_playwright_error(e)
            if translated is e:
                raise
            raise translated from e

    # ------------------------------------------------------------------------
    # LOOKUP
    # ------------------------------------------------------------------------

    async def locate(self, selector: str, root: Optional[ElementHandle] = None) -> ElementHandle:
        scope = root if root is not None else self.page
        handle = await self._call(scope.query_selector(selector))
        if handle is None:
            raise ElementNotFoundError(f"no element matches '{selector}'")
        return handle

    async def locate_all(self, selector: str, root: Optional[ElementHandle] = None) -> List[ElementHandle]:
        scope = root if root is not None else self.page
        return await self._call(scope.query_selector_all(selector))

    async def text_of(self, handle: ElementHandle) -> str:
        return (await self._call(handle.inner_text())).strip()

    async def attribute_of(self, handle: ElementHandle, name: str) -> Optional[str]:
        return await self._call(handle.get_attribute(name))

    async def is_displayed(self, handle: ElementHandle) -> bool:
        return await self._call(handle.is_visible())

    # ------------------------------------------------------------------------
    # WAITS
    # ------------------------------------------------------------------------

    async def wait_until(
        self,
        condition: Callable[[], Awaitable[T]],
        timeout: Optional[float] = None,
        description: str = "condition",
    ) -> T:
        """Poll ``condition`` until it returns a truthy value.

        Transient errors raised by the condition (missing or stale elements) are
        treated as "not yet"; anything else propagates immediately.

        Args:
            condition: Zero-argument coroutine factory.
            timeout: Seconds to wait, defaults to the locator timeout.
            description: Used in the timeout message.

        Returns:
            The first truthy value returned by ``condition``.

        Raises:
            WaitTimeout: ``timeout`` elapsed before the condition held.
        """
        timeout = self.timeout if timeout is None else timeout
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        last_error = None

        while True:
            try:
                result = await condition()
                if result:
                    return result
            except Exception as e:
                if not is_transient(e):
                    raise
                last_error = e

            if loop.time() >= deadline:
                logging.error(f"TIMEOUT after {timeout}s waiting for {description}")
                raise WaitTimeout(f"timed out after {timeout}s waiting for {description}") from last_error
            await asyncio.sleep(self.poll_interval)

    async def wait_for_count_above(self, selector: str, count: int = 0, timeout: Optional[float] = None) -> List[ElementHandle]:
        async def _enough():
            handles = await self.locate_all(selector)
            return handles if len(handles) > count else None

        return await self.wait_until(_enough, timeout, f"more than {count} '{selector}'")

    async def wait_for_visible(self, handle: ElementHandle, timeout: Optional[float] = None) -> ElementHandle:
        async def _visible():
            return handle if await self.is_displayed(handle) else None

        return await self.wait_until(_visible, timeout, "element to be visible")

    async def wait_for_clickable(self, target, timeout: Optional[float] = None) -> ElementHandle:
        """Wait until ``target`` is visible and enabled.

        ``target`` is either a handle or a selector; a selector is re-located on
        every poll so a re-rendered node does not fail the wait.
        """

        async def _clickable():
            handle = await self.locate(target) if isinstance(target, str) else target
            if await self._call(handle.is_visible()) and await self._call(handle.is_enabled()):
                return handle
            return None

        return await self.wait_until(_clickable, timeout, f"{target if isinstance(target, str) else 'element'} to be clickable")

    async def wait_for_text(self, handle: ElementHandle, expected: str, timeout: Optional[float] = None) -> ElementHandle:
        async def _has_text():
            return handle if expected in await self.text_of(handle) else None

        return await self.wait_until(_has_text, timeout, f"text '{expected}'")

    # ------------------------------------------------------------------------
    # ACTIONS
    # ------------------------------------------------------------------------

    async def click(self, handle: ElementHandle) -> None:
        await self._call(handle.click(timeout=self.timeout * 1000))

    async def hover(self, handle: ElementHandle) -> None:
        await self._call(handle.hover(timeout=self.timeout * 1000))

    async def hover_and_click(self, handle: ElementHandle) -> None:
        """Move the pointer onto the element before clicking, like a user would."""
        await self.hover(handle)
        await self.click(handle)

    async def type_text(self, handle: ElementHandle, text: str) -> None:
        await self._call(handle.type(text))

    async def input_value(self, handle: ElementHandle) -> str:
        return await self._call(handle.input_value())

    async def scroll_into_view(self, handle: ElementHandle) -> None:
        # plain scrollIntoView, Firefox does not always honour scroll_into_view_if_needed here
        await self._call(handle.evaluate("el => el.scrollIntoView(false)"))

    async def goto(self, url: str) -> None:
        logging.info(f"Navigating to: {url}")
        await self._call(self.page.goto(url, wait_until="domcontentloaded", timeout=60000))

    async def reload(self) -> None:
        logging.debug(f"Reloading page: {self.page.url}")
        await self._call(self.page.reload(wait_until="domcontentloaded", timeout=60000))
