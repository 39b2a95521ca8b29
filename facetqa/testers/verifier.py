import logging
from typing import Iterable, List, Optional

from facetqa.crawler.detail_fetcher import DetailDocument
from facetqa.crawler.result_collector import NEW_MARKER, SALE_MARKER, ProductRecord
from facetqa.data.test_structures import FacetAxis, FacetRequest, VerificationResult

LIMITED_HIGHLIGHT = "limitiert"
# highlight value -> tile marker that proves it
MARKER_HIGHLIGHTS = {
    "sale": SALE_MARKER,
    "neu": NEW_MARKER,
}


class Verifier:
    """Compares what was requested against what the page and detail documents show.

    Every method is a pure function of its arguments; nothing here touches the browser.
    """

    def assert_facets_applied(self, requests: Iterable[FacetRequest], summary: str) -> List[VerificationResult]:
        """One result per non-empty request: its value must appear in the selected-facets summary."""
        folded = summary.casefold()
        results = []
        for request in requests:
            if request.is_empty:
                continue
            results.append(
                VerificationResult(
                    axis=request.axis,
                    expected=request.value,
                    actual=summary,
                    passed=request.value.casefold() in folded,
                    context="selected facets",
                )
            )
        return results

    def assert_product_matches(
        self,
        record: ProductRecord,
        requests: Iterable[FacetRequest],
        detail: Optional[DetailDocument],
    ) -> List[VerificationResult]:
        """Check one in-stock product against every non-empty request.

        Target audience is not visible per product and is only confirmed through
        the selected-facets summary.
        """
        context = record.detail_link or record.name
        results = []
        for request in requests:
            if request.is_empty:
                continue
            if request.axis == FacetAxis.PRODUKTART:
                results.append(self._equals(request, record.category, context))
            elif request.axis == FacetAxis.MARKE:
                results.append(self._equals(request, record.brand, context))
            elif request.axis == FacetAxis.HIGHLIGHT:
                result = self._check_highlight(request, record, detail, context)
                if result is not None:
                    results.append(result)
            elif request.axis == FacetAxis.GESCHENK_FUR:
                occasion = detail.gift_occasion() if detail is not None else None
                results.append(self._contains(request, occasion or "", context))
        return results

    def _check_highlight(
        self,
        request: FacetRequest,
        record: ProductRecord,
        detail: Optional[DetailDocument],
        context: str,
    ) -> Optional[VerificationResult]:
        highlight = request.value.casefold()
        if highlight == LIMITED_HIGHLIGHT:
            badge = detail.badge_text() if detail is not None else ""
            return self._contains(request, badge, context)

        if highlight in MARKER_HIGHLIGHTS:
            # promotional copy like "-19% ZUM UVP." varies, only the marker counts
            return VerificationResult(
                axis=request.axis,
                expected=request.value,
                actual=record.badge_text,
                passed=MARKER_HIGHLIGHTS[highlight] in record.markers,
                context=context,
            )

        logging.debug(f"highlight '{request.value}' has no product level check")
        return None

    @staticmethod
    def _equals(request: FacetRequest, actual: str, context: str) -> VerificationResult:
        return VerificationResult(
            axis=request.axis,
            expected=request.value,
            actual=actual,
            passed=actual.strip().casefold() == request.value.casefold(),
            context=context,
        )

    @staticmethod
    def _contains(request: FacetRequest, actual: str, context: str) -> VerificationResult:
        return VerificationResult(
            axis=request.axis,
            expected=request.value,
            actual=actual,
            passed=request.value.casefold() in actual.casefold(),
            context=context,
        )
