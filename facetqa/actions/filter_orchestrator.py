import logging
from typing import Iterable

from facetqa.actions.errors import InteractionFailure, is_recoverable
from facetqa.actions.facet_dropdown import FacetDropdownController
from facetqa.actions.locator import ElementLocator
from facetqa.actions.retry import RetryBudget, with_retry
from facetqa.browser.selectors import PageSelectors
from facetqa.data.test_structures import AXIS_ORDER, FacetRequest


class FilterOrchestrator:
    """Applies facet requests to the listing page, one dropdown at a time."""

    def __init__(
        self,
        locator: ElementLocator,
        selectors: PageSelectors,
        max_retries: int = 3,
        confirm_timeout: float = 20,
    ):
        self.locator = locator
        self.selectors = selectors
        self.max_retries = max_retries
        self.confirm_timeout = confirm_timeout
        self.dropdown = FacetDropdownController(locator, selectors)

    async def selected_facets_text(self) -> str:
        chips = await self.locator.locate_all(self.selectors.selected_facets)
        return " ".join([await self.locator.text_of(chip) for chip in chips])

    async def wait_for_facet_enabled(self, value: str) -> None:
        """Wait until the selected-facets summary mentions ``value``."""
        expected = value.casefold()

        async def _enabled():
            return expected in (await self.selected_facets_text()).casefold()

        await self.locator.wait_until(_enabled, self.confirm_timeout, f"selected facet '{value}'")

    async def apply_facet(self, request: FacetRequest, budget: RetryBudget) -> None:
        """Apply one facet. Any recoverable failure reloads the page and restarts from open."""
        if request.is_empty:
            logging.info(f"\t{request.name}: empty facet, skipping filter")
            return

        logging.info(f"{request.name} setting filter to: {request.value}")

        async def _attempt():
            await self.dropdown.open(request.name, RetryBudget(self.max_retries))
            if request.requires_search_input:
                await self.dropdown.search(request.value)
            await self.dropdown.select(request.value, RetryBudget(self.max_retries))
            await self.wait_for_facet_enabled(request.value)
            await self.dropdown.close()

        try:
            await with_retry(
                budget,
                _attempt,
                recovery=self.locator.reload,
                step=f"SET FILTER {request.name}={request.value}",
                retry_on=is_recoverable,
            )
        except InteractionFailure as e:
            raise InteractionFailure(f"SET FILTER ERROR! facet '{request.name}' value '{request.value}'", e.cause) from e

    async def apply_all(self, requests: Iterable[FacetRequest]) -> None:
        """Apply every request in fixed axis order, each with a fresh budget."""
        for request in sorted(requests, key=lambda r: AXIS_ORDER.index(r.axis)):
            await self.apply_facet(request, RetryBudget(self.max_retries))
