import logging
from datetime import datetime
from typing import List, Optional

from playwright.async_api import Page

from facetqa.actions.errors import FetchFailure
from facetqa.actions.filter_orchestrator import FilterOrchestrator
from facetqa.actions.locator import ElementLocator
from facetqa.actions.retry import RetryBudget
from facetqa.actions.session_navigator import SessionNavigator
from facetqa.browser.config import EngineConfig
from facetqa.crawler.detail_fetcher import DetailFetcher
from facetqa.crawler.result_collector import ProductRecord, ResultCollector
from facetqa.data.test_structures import (FacetRequest, FacetTestCase, ProductVerdict,
                                          TestResult, TestStatus)
from facetqa.testers.verifier import Verifier
from facetqa.utils.log_icon import icon


class ProductFilterTest:
    """Applies the facets of one test case and checks every listed product against them.

    Interaction failures that outlive their budget are not caught here; they end
    the test case and are turned into a failed verdict by the executor.
    """

    def __init__(self, page: Page, config: EngineConfig, fetcher: Optional[DetailFetcher] = None):
        self.config = config
        self.locator = ElementLocator(page, timeout=config.timeout)
        self.navigator = SessionNavigator(self.locator, config.selectors)
        self.orchestrator = FilterOrchestrator(
            self.locator, config.selectors, max_retries=config.retries, confirm_timeout=config.confirm_timeout
        )
        self.collector = ResultCollector(self.locator, config.selectors, max_retries=config.retries)
        self.fetcher = fetcher or DetailFetcher(config.fetch_timeout, config.fetch_retries, config.selectors)
        self.verifier = Verifier()

    async def run(self, test_case: FacetTestCase, test_id: str, attempt: int = 1) -> TestResult:
        result = TestResult(
            test_id=test_id,
            test_name=test_case.title(),
            test_case=test_case,
            status=TestStatus.RUNNING,
            attempt=attempt,
            start_time=datetime.now(),
        )
        requests = test_case.to_requests()
        logging.info(f"{icon['running']} Running test: {result.test_name} (attempt {attempt})")

        await self.navigator.enter(self.config.url, RetryBudget(self.config.retries))
        await self.navigator.goto_listing(RetryBudget(self.config.retries))
        await self.orchestrator.apply_all(requests)

        summary = await self.orchestrator.selected_facets_text()
        result.facet_results = self.verifier.assert_facets_applied(requests, summary)
        for failed in (r for r in result.facet_results if not r.passed):
            logging.error(f"{icon['cross']} facet not applied: {failed.describe()}")

        if any(not r.passed for r in result.facet_results):
            result.error_message = "selected facets do not match the requested filters"
        elif all(r.is_empty for r in requests):
            logging.info("no facet requested, product checks skipped")
        else:
            # the facet dropdowns leave the result list half re-rendered
            await self.locator.reload()
            result.products = await self.check_products(requests)

        result.finalize_status()
        result.end_time = datetime.now()
        result.duration = (result.end_time - result.start_time).total_seconds()
        logging.info(
            f"{icon['check']} Test completed: {result.test_name} - {result.status.value}, "
            f"{result.product_count} products, {result.out_of_stock_count} out of stock"
        )
        return result

    async def check_products(self, requests: List[FacetRequest]) -> List[ProductVerdict]:
        verdicts = []
        for record in await self.collector.list_products():
            verdicts.append(await self.check_product(record, requests))
        return verdicts

    async def check_product(self, record: ProductRecord, requests: List[FacetRequest]) -> ProductVerdict:
        verdict = ProductVerdict(name=record.name, detail_link=record.detail_link, in_stock=record.in_stock)
        if not record.in_stock:
            logging.info(f"\tout of stock, skipped: {record.name}")
            verdict.status = TestStatus.SKIPPED
            return verdict

        try:
            detail = await self.fetcher.fetch(record.detail_link)
        except FetchFailure as e:
            logging.error(f"{icon['cross']} {e}")
            verdict.status = TestStatus.ERROR
            verdict.error_message = str(e)
            return verdict

        # the tile can lag behind the detail page
        stock_label = detail.stock_label()
        if stock_label:
            logging.info(f"\tout of stock ({stock_label}), skipped: {record.name}")
            verdict.in_stock = False
            verdict.status = TestStatus.SKIPPED
            return verdict

        verdict.results = self.verifier.assert_product_matches(record, requests, detail)
        for failed in verdict.failed_results:
            logging.error(f"{icon['cross']} {failed.describe()}")
        verdict.status = TestStatus.FAILED if verdict.failed_results else TestStatus.PASSED
        return verdict
