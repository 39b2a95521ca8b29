from .product_filter_tester import ProductFilterTest
from .verifier import Verifier

__all__ = ["ProductFilterTest", "Verifier"]
