import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from playwright.async_api import Page

from facetqa.browser.config import DEFAULT_CONFIG
from facetqa.browser.driver import Driver


class BrowserSession:
    """The browser owned by one test-case attempt."""

    def __init__(self, test_id: str, browser_config: Optional[Dict[str, Any]] = None):
        self.test_id = test_id
        self.session_id = f"{test_id}-{uuid.uuid4().hex[:8]}"
        self.browser_config = {**DEFAULT_CONFIG, **(browser_config or {})}
        self.driver: Optional[Driver] = None

    @property
    def page(self) -> Page:
        if self.driver is None or self.driver.is_closed():
            raise RuntimeError(f"Browser session {self.session_id} is not open")
        return self.driver.page

    def is_open(self) -> bool:
        return self.driver is not None and not self.driver.is_closed()

    async def open(self):
        logging.debug(f"Opening browser session {self.session_id} with config: {self.browser_config}")
        self.driver = await Driver.launch(self.browser_config)

    async def close(self):
        if self.driver is None:
            return
        driver, self.driver = self.driver, None
        try:
            await driver.close()
            logging.info(f"Browser session {self.session_id} closed")
        except Exception as e:
            logging.error(f"Error while closing browser session {self.session_id}: {e}")


class SessionPool:
    """Tracks the open sessions of all concurrently running test cases."""

    def __init__(self):
        self.sessions: Dict[str, BrowserSession] = {}
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def session(self, test_id: str, browser_config: Optional[Dict[str, Any]] = None) -> AsyncIterator[BrowserSession]:
        """Open a fresh session for one attempt of ``test_id`` and always close it afterwards."""
        session = BrowserSession(test_id, browser_config)
        async with self._lock:
            self.sessions[session.session_id] = session
        try:
            await session.open()
            logging.info(f"Created browser session: {session.session_id}")
            yield session
        finally:
            async with self._lock:
                self.sessions.pop(session.session_id, None)
            await session.close()

    async def close_all(self):
        """Close whatever is still open, e.g. after a cancelled run."""
        async with self._lock:
            sessions = list(self.sessions.values())
            self.sessions.clear()

        if sessions:
            await asyncio.gather(*[session.close() for session in sessions], return_exceptions=True)
            logging.info(f"Closed {len(sessions)} browser sessions")
