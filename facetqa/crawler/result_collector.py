import logging
from typing import FrozenSet, List, Optional
from urllib.parse import urljoin

from playwright.async_api import ElementHandle
from pydantic import BaseModel, ConfigDict

from facetqa.actions.errors import (ElementNotFoundError, InteractionFailure,
                                    TransientInteractionError, WaitTimeout, is_stale)
from facetqa.actions.locator import ElementLocator
from facetqa.actions.retry import RetryBudget, with_retry
from facetqa.browser.selectors import PageSelectors

SALE_MARKER = "sale"
NEW_MARKER = "neu"


class ProductRecord(BaseModel):
    """Read-only snapshot of one rendered result tile.

    Records are rebuilt on every enumeration; a reload invalidates them.
    """

    model_config = ConfigDict(frozen=True)

    name: str = ""
    brand: str = ""
    category: str = ""
    highlight_badges: FrozenSet[str] = frozenset()
    markers: FrozenSet[str] = frozenset()
    in_stock: bool = True
    detail_link: Optional[str] = None

    @property
    def badge_text(self) -> str:
        return " ".join(sorted(self.highlight_badges))


class ResultCollector:
    def __init__(self, locator: ElementLocator, selectors: PageSelectors, max_retries: int = 3):
        self.locator = locator
        self.selectors = selectors
        self.max_retries = max_retries

    async def list_tiles(self) -> List[ElementHandle]:
        """Return the currently rendered product tiles, waiting for the first one.

        Raises:
            InteractionFailure: No tile rendered, even after reloading the page.
        """
        return await with_retry(
            RetryBudget(self.max_retries),
            lambda: self.locator.wait_for_count_above(self.selectors.product_tile, 0),
            recovery=self.locator.reload,
            step="LIST PRODUCTS",
            retry_on=lambda e: isinstance(e, WaitTimeout),
        )

    async def list_products(self) -> List[ProductRecord]:
        tiles = await self.list_tiles()
        return [await self._read_tile(tiles, index) for index in range(len(tiles))]

    async def _read_tile(self, tiles: List[ElementHandle], index: int) -> ProductRecord:
        """Read ``tiles[index]``, re-locating it while it is stale.

        A tile that stays unreadable yields an empty record without a detail
        link, so the remaining tiles are still verified.
        """

        async def _read():
            return await self.read_record(tiles[index], RetryBudget(self.max_retries))

        async def _relocate():
            fresh = await self.locator.locate_all(self.selectors.product_tile)
            if index < len(fresh):
                tiles[index] = fresh[index]

        try:
            return await with_retry(
                RetryBudget(self.max_retries), _read, recovery=_relocate, step="READ PRODUCT TILE", retry_on=is_stale
            )
        except InteractionFailure as e:
            logging.error(f"product tile #{index + 1} unreadable: {e}")
            return ProductRecord(name=f"product tile #{index + 1}")

    async def read_record(self, tile: ElementHandle, budget: RetryBudget) -> ProductRecord:
        markers = set()
        if await self._marker_displayed(tile, self.selectors.tile_sale_marker):
            markers.add(SALE_MARKER)
        if await self._marker_displayed(tile, self.selectors.tile_new_marker):
            markers.add(NEW_MARKER)

        return ProductRecord(
            name=await self._text_or_empty(tile, self.selectors.tile_name),
            brand=await self._text_or_empty(tile, self.selectors.tile_brand),
            category=await self._text_or_empty(tile, self.selectors.tile_category),
            highlight_badges=frozenset(await self.get_highlights(tile)),
            markers=frozenset(markers),
            in_stock=not await self.is_out_of_stock(tile),
            detail_link=await self.get_detail_link(tile, budget),
        )

    async def get_detail_link(self, tile: ElementHandle, budget: RetryBudget) -> Optional[str]:
        """Read the tile's detail link, or None once staleness exhausted ``budget``.

        A single unreadable link must not abort the scan of the other tiles.
        """

        async def _read():
            link = await self.locator.locate(self.selectors.tile_link, root=tile)
            return await self.locator.attribute_of(link, "href")

        try:
            href = await with_retry(budget, _read, step="GET PRODUCT LINK", retry_on=is_stale)
        except (InteractionFailure, ElementNotFoundError) as e:
            logging.info(f"getProductLink: no link for product tile: {e}")
            return None

        return urljoin(self.locator.page.url, href) if href else None

    async def is_out_of_stock(self, tile: ElementHandle) -> bool:
        try:
            marker = await self.locator.locate(self.selectors.tile_out_of_stock, root=tile)
            return await self.locator.is_displayed(marker)
        except Exception as e:
            if is_stale(e):
                raise
            # no marker is the common case
            return False

    async def get_highlights(self, tile: ElementHandle) -> List[str]:
        badges = await self.locator.locate_all(self.selectors.tile_badge, root=tile)
        texts = [await self.locator.text_of(badge) for badge in badges]
        return [text for text in texts if text]

    async def _marker_displayed(self, tile: ElementHandle, selector: str) -> bool:
        try:
            marker = await self.locator.locate(selector, root=tile)
            return await self.locator.is_displayed(marker)
        except TransientInteractionError as e:
            if is_stale(e):
                raise
            return False

    async def _text_or_empty(self, tile: ElementHandle, selector: str) -> str:
        try:
            return await self.locator.text_of(await self.locator.locate(selector, root=tile))
        except TransientInteractionError as e:
            if is_stale(e):
                raise
            logging.warning(f"product tile has no '{selector}' entry")
            return ""

