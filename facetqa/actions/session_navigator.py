import logging

from facetqa.actions.errors import InteractionFailure, TransientInteractionError
from facetqa.actions.locator import ElementLocator
from facetqa.actions.retry import RetryBudget, with_retry
from facetqa.browser.selectors import PageSelectors


class SessionNavigator:
    """Gets a fresh browser session from the landing page onto the listing page."""

    def __init__(self, locator: ElementLocator, selectors: PageSelectors):
        self.locator = locator
        self.selectors = selectors

    async def enter(self, url: str, budget: RetryBudget) -> None:
        """Open ``url`` and dismiss the consent overlay.

        The overlay is the step most likely to fail, usually because the site
        blocked the session. After a successful dismissal the page is reloaded
        once more: some engines keep the dismissed overlay in front of the main
        navigation until the next load.

        Raises:
            InteractionFailure: The page or its overlay never loaded within the budget.
        """
        navigated = False

        async def _dismiss():
            nonlocal navigated
            if not navigated:
                await self.locator.goto(url)
                navigated = True
            overlay = await self.locator.wait_until(
                lambda: self.locator.locate(self.selectors.consent_overlay), description="consent overlay"
            )
            await self.locator.wait_for_visible(overlay)
            accept = await self.locator.locate(self.selectors.consent_accept)
            await self.locator.click(accept)

        async def _recover():
            # a failed goto is simply repeated
            if navigated:
                await self.locator.reload()

        try:
            await with_retry(budget, _dismiss, recovery=_recover, step="HANDLE CONSENT OVERLAY")
        except InteractionFailure as e:
            raise InteractionFailure("MODAL: consent overlay not found - likely blocked (ACCESS DENIED)", e.cause) from e

        try:
            await self.locator.reload()
        except TransientInteractionError as e:
            logging.warning(f"reload after consent overlay failed, continuing: {e}")
        logging.info("consent overlay dismissed")

    async def goto_listing(self, budget: RetryBudget) -> None:
        """Click through the main navigation to the listing page."""

        async def _navigate():
            nav_entry = await self.locator.wait_for_clickable(self.selectors.listing_nav_entry)
            await self.locator.hover_and_click(nav_entry)

            # park the pointer so the hover menu does not cover the facets
            header = await self.locator.locate(self.selectors.page_header)
            await self.locator.hover(header)

        await with_retry(budget, _navigate, recovery=self.locator.reload, step="GOTO LISTING PAGE")
        logging.info(f"listing page reached: {self.locator.page.url}")
