import asyncio
import logging
import uuid
from datetime import datetime
from typing import Dict, List, Optional

from facetqa.browser.config import EngineConfig
from facetqa.browser.session import SessionPool
from facetqa.crawler.detail_fetcher import DetailFetcher
from facetqa.data.test_structures import FacetTestCase, ParallelTestSession, TestResult, TestStatus
from facetqa.executor.result_aggregator import ResultAggregator
from facetqa.testers.product_filter_tester import ProductFilterTest
from facetqa.utils.log_icon import icon
from facetqa.utils.screenshot import ScreenshotTaker


class RetryLedger:
    """Counts whole-test reruns per test identity.

    Shared by all concurrently running test cases, so every access is locked.
    """

    def __init__(self, max_retries: int = 3):
        self.max_retries = max_retries
        self._counts: Dict[str, int] = {}
        self._lock = asyncio.Lock()

    async def should_retry(self, key: str) -> bool:
        """Record one rerun of ``key`` if it still has reruns left."""
        async with self._lock:
            count = self._counts.get(key, 0)
            if count >= self.max_retries:
                return False
            self._counts[key] = count + 1
            return True

    async def retries_used(self, key: str) -> int:
        async with self._lock:
            return self._counts.get(key, 0)


class ParallelTestExecutor:
    """Runs facet test cases concurrently, one isolated browser session each."""

    def __init__(self, config: EngineConfig):
        self.config = config
        self.max_concurrent_tests = config.max_concurrent_tests
        self.sessions = SessionPool()
        self.result_aggregator = ResultAggregator()
        self.retry_ledger = RetryLedger(config.test_retries)
        self.screenshots = ScreenshotTaker(config.report_dir)
        self.fetcher = DetailFetcher(config.fetch_timeout, config.fetch_retries, config.selectors)

    async def execute_parallel_tests(self, test_cases: List[FacetTestCase]) -> ParallelTestSession:
        """Execute all test cases and write the JSON report.

        Returns:
            The completed session, with aggregated counts and the report path.
        """
        test_session = ParallelTestSession(
            session_id=str(uuid.uuid4()),
            target_url=self.config.url,
            browser=self.config.browser,
        )
        logging.info(f"Starting parallel test execution for session: {test_session.session_id}")
        test_session.start_session()

        if not test_cases:
            logging.warning("No test cases found")

        semaphore = asyncio.Semaphore(self.max_concurrent_tests)
        try:
            tasks = [
                asyncio.create_task(self._execute_single_test(test_case, f"case_{index:03d}", semaphore))
                for index, test_case in enumerate(test_cases, start=1)
            ]
            for result in await asyncio.gather(*tasks):
                test_session.update_test_result(result)
        finally:
            test_session.complete_session()
            await self.sessions.close_all()
            self.fetcher.close()

        logging.info("Aggregating test results...")
        test_session.aggregated_results = await self.result_aggregator.aggregate_results(test_session)
        test_session.report_path = await self.result_aggregator.generate_json_report(
            test_session, self.config.report_dir
        )
        logging.info(f"Parallel test execution completed. Report: {test_session.report_path}")
        return test_session

    async def _execute_single_test(
        self, test_case: FacetTestCase, test_id: str, semaphore: asyncio.Semaphore
    ) -> TestResult:
        """Run one test case, rerunning it while the retry ledger allows."""
        key = test_case.key()
        attempt = 1
        async with semaphore:
            while True:
                result = await self._run_attempt(test_case, test_id, attempt)
                if result.status == TestStatus.PASSED or not await self.retry_ledger.should_retry(key):
                    return result
                attempt += 1
                used = await self.retry_ledger.retries_used(key)
                logging.warning(
                    f"{icon['retry']} Rerunning {result.test_name}, attempt {attempt} "
                    f"(rerun {used}/{self.retry_ledger.max_retries})"
                )

    async def _run_attempt(self, test_case: FacetTestCase, test_id: str, attempt: int) -> TestResult:
        """Run one attempt in its own browser. Any error ends the attempt as FAILED."""
        start_time = datetime.now()
        try:
            async with self.sessions.session(test_id, self.config.browser_config()) as session:
                try:
                    tester = ProductFilterTest(session.page, self.config, fetcher=self.fetcher)
                    return await tester.run(test_case, test_id, attempt)
                except Exception as e:
                    screenshot_path = None
                    # capture the page before the session closes
                    if session.is_open():
                        screenshot_path = await self.screenshots.take_screenshot(session.page, test_case.title())
                    return self._failed_result(test_case, test_id, attempt, start_time, e, screenshot_path)
        except Exception as e:
            return self._failed_result(test_case, test_id, attempt, start_time, e)

    @staticmethod
    def _failed_result(
        test_case: FacetTestCase,
        test_id: str,
        attempt: int,
        start_time: datetime,
        error: Exception,
        screenshot_path: Optional[str] = None,
    ) -> TestResult:
        error_msg = f"Test execution failed: {error}"
        logging.error(f"{icon['cross']} Test failed: {test_case.title()} - {error_msg}", exc_info=error)
        end_time = datetime.now()
        return TestResult(
            test_id=test_id,
            test_name=test_case.title(),
            test_case=test_case,
            status=TestStatus.FAILED,
            attempt=attempt,
            error_message=error_msg,
            screenshot_path=screenshot_path,
            start_time=start_time,
            end_time=end_time,
            duration=(end_time - start_time).total_seconds(),
        )
