from .parallel_executor import ParallelTestExecutor, RetryLedger
from .result_aggregator import ResultAggregator

__all__ = ["ParallelTestExecutor", "RetryLedger", "ResultAggregator"]
