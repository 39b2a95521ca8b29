import json
import logging
import os
from typing import Any, Dict, List

from facetqa.data.test_structures import ParallelTestSession, TestStatus


class ResultAggregator:
    """Aggregates test-case verdicts and writes the JSON report."""

    async def aggregate_results(self, test_session: ParallelTestSession) -> Dict[str, Any]:
        """Count verdicts per status and collect the failure messages.

        Args:
            test_session: Session containing all test results

        Returns:
            Aggregated results dictionary
        """
        logging.info(f"Aggregating results for session: {test_session.session_id}")
        results = list(test_session.test_results.values())

        status_counts = {status.value: 0 for status in TestStatus}
        for result in results:
            status_counts[result.status.value] += 1

        products = [p for r in results for p in r.products]
        product_counts = {
            "total": len(products),
            "out_of_stock": sum(1 for p in products if not p.in_stock),
            "passed": sum(1 for p in products if p.status == TestStatus.PASSED),
            "failed": sum(1 for p in products if p.status == TestStatus.FAILED),
            "error": sum(1 for p in products if p.status == TestStatus.ERROR),
        }

        return {
            "total_tests": len(results),
            "status_counts": status_counts,
            "product_counts": product_counts,
            "issues": self._get_issues(test_session),
        }

    def _get_issues(self, test_session: ParallelTestSession) -> List[Dict[str, Any]]:
        issues = []
        for result in test_session.test_results.values():
            if result.status == TestStatus.PASSED:
                continue
            if result.error_message:
                issues.append({"test_name": result.test_name, "severity": "high", "issues": result.error_message})
            for product in result.products:
                if product.status == TestStatus.ERROR:
                    issues.append(
                        {"test_name": result.test_name, "severity": "medium", "issues": product.error_message}
                    )
                for failed in product.failed_results:
                    issues.append({"test_name": result.test_name, "severity": "high", "issues": failed.describe()})
        return issues

    async def generate_json_report(self, test_session: ParallelTestSession, report_dir: str | None = None) -> str:
        """Generate JSON report."""
        try:
            timestamp = os.getenv("FACETQA_TIMESTAMP") or test_session.session_id
            report_dir = os.path.join(report_dir or "./reports", f"test_{timestamp}")
            os.makedirs(report_dir, exist_ok=True)

            json_path = os.path.join(report_dir, "test_results.json")
            with open(json_path, "w", encoding="utf-8") as f:
                json.dump(test_session.to_dict(), f, indent=2, ensure_ascii=False, default=str)

            absolute_path = os.path.abspath(json_path)
            logging.debug(f"JSON report generated: {absolute_path}")
            return absolute_path

        except Exception as e:
            logging.error(f"Failed to generate JSON report: {e}")
            return ""
