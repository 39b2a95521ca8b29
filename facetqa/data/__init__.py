from .test_case_loader import load_test_cases
from .test_structures import (
    FacetAxis,
    FacetRequest,
    FacetTestCase,
    ParallelTestSession,
    ProductVerdict,
    TestResult,
    TestStatus,
    VerificationResult,
)

__all__ = [
    "FacetAxis",
    "FacetRequest",
    "FacetTestCase",
    "ParallelTestSession",
    "ProductVerdict",
    "TestResult",
    "TestStatus",
    "VerificationResult",
    "load_test_cases",
]
