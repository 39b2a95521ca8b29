import logging
import re

from facetqa.actions.errors import ElementNotFoundError, is_stale
from facetqa.actions.locator import ElementLocator
from facetqa.actions.retry import RetryBudget, with_retry
from facetqa.browser.selectors import PageSelectors

_TRAILING_COUNT = re.compile(r"\s*\(\s*\d+\s*\)\s*$")


def normalize_option_label(label: str) -> str:
    """Strip the trailing result count from an option label.

    "Chanel (12)" -> "Chanel"
    """
    return _TRAILING_COUNT.sub("", label or "").strip()


def labels_match(label: str, expected: str) -> bool:
    return normalize_option_label(label).casefold() == (expected or "").strip().casefold()


class FacetDropdownController:
    """Drives a single facet dropdown on the listing page.

    Only one dropdown is open at a time, so the search field, the options and
    the close button are looked up page-wide.
    """

    def __init__(self, locator: ElementLocator, selectors: PageSelectors):
        self.locator = locator
        self.selectors = selectors

    async def open(self, facet_name: str, budget: RetryBudget) -> None:
        """Open the facet group labelled ``facet_name``.

        Opening is the flakiest step of the whole flow: when the options do not
        become clickable the attempt is repeated (without a reload) until
        ``budget`` runs out.
        """

        async def _attempt():
            # an unhydrated facet bar looks exactly like "no such facet"
            groups = await self.locator.wait_for_count_above(self.selectors.facet_group, 0)

            for group in groups:
                title = await self.locator.locate(self.selectors.facet_title, root=group)
                if (await self.locator.text_of(title)).casefold() == facet_name.casefold():
                    logging.info(f"clicking facet: {facet_name}")
                    await self.locator.click(group)
                    break
            else:
                raise ElementNotFoundError(f"facet '{facet_name}' not found among {len(groups)} facets")

            await self.locator.wait_for_clickable(self.selectors.facet_option_checkbox)

        await with_retry(budget, _attempt, step=f"OPEN FILTER DROPDOWN ({facet_name})")

    async def search(self, query: str) -> None:
        search_field = await self.locator.wait_for_clickable(self.selectors.facet_search_input)
        await self.locator.type_text(search_field, query)
        logging.info(f"search field contains: {await self.locator.input_value(search_field)}")

        # narrowing re-renders the option list
        await self.locator.wait_for_clickable(self.selectors.facet_option_checkbox)

    async def select(self, facet: str, budget: RetryBudget) -> None:
        """Tick the option whose label matches ``facet``.

        Option lists are re-rendered constantly, so staleness during the scan is
        retried here. A missing option is left to the caller.
        """

        async def _attempt():
            options = await self.locator.locate_all(self.selectors.facet_option)
            for option in options:
                label = await self.locator.locate(self.selectors.facet_option_label, root=option)
                if labels_match(await self.locator.text_of(label), facet):
                    checkbox = await self.locator.locate(self.selectors.facet_option_checkbox, root=option)
                    await self.locator.click(checkbox)
                    logging.info(f"selected facet option: {facet}")
                    return
            raise ElementNotFoundError(f"no option labelled '{facet}' among {len(options)} options")

        await with_retry(budget, _attempt, step=f"SELECT FILTER OPTION ({facet})", retry_on=is_stale)

    async def close(self) -> None:
        """Close the open dropdown. Never raises."""
        try:
            close_button = await self.locator.locate(self.selectors.facet_close)
            await self.locator.scroll_into_view(close_button)
            await self.locator.wait_for_visible(close_button)
            await self.locator.wait_for_text(close_button, self.selectors.facet_close_label)
            await self.locator.wait_for_clickable(close_button)
            await self.locator.click(close_button)
        except Exception as e:
            logging.warning(f"CLOSE BUTTON: there was an issue with the close button, ignoring and continuing: {e}")
