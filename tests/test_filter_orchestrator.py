"""
Unit tests for FilterOrchestrator.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from facetqa.actions.errors import ElementNotFoundError, InteractionFailure, WaitTimeout
from facetqa.actions.filter_orchestrator import FilterOrchestrator
from facetqa.actions.retry import RetryBudget
from facetqa.data.test_structures import FacetAxis, FacetRequest, FacetTestCase
from facetqa.testers.verifier import Verifier


@pytest.fixture
def orchestrator(mock_locator, selectors):
    orchestrator = FilterOrchestrator(mock_locator, selectors, max_retries=2, confirm_timeout=1)
    orchestrator.dropdown = AsyncMock()
    return orchestrator


class TestApplyFacet:
    @pytest.mark.asyncio
    async def test_empty_request_touches_nothing(self, orchestrator, mock_locator):
        request = FacetRequest.for_axis(FacetAxis.MARKE, "  ")

        await orchestrator.apply_facet(request, RetryBudget(2))

        assert orchestrator.dropdown.method_calls == []
        assert mock_locator.method_calls == []

    @pytest.mark.asyncio
    async def test_search_only_when_required(self, orchestrator):
        await orchestrator.apply_facet(FacetRequest.for_axis(FacetAxis.HIGHLIGHT, "Neu"), RetryBudget(2))
        orchestrator.dropdown.search.assert_not_awaited()

        await orchestrator.apply_facet(FacetRequest.for_axis(FacetAxis.MARKE, "Chanel"), RetryBudget(2))
        orchestrator.dropdown.search.assert_awaited_once_with("Chanel")

    @pytest.mark.asyncio
    async def test_transient_failure_reloads_and_restarts_from_open(self, orchestrator, mock_locator):
        orchestrator.dropdown.select.side_effect = [ElementNotFoundError("no option yet"), None]

        await orchestrator.apply_facet(FacetRequest.for_axis(FacetAxis.PRODUKTART, "Parfum"), RetryBudget(2))

        assert orchestrator.dropdown.open.await_count == 2
        mock_locator.reload.assert_awaited_once()
        orchestrator.dropdown.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_nested_fatal_open_failure_is_retried(self, orchestrator, mock_locator):
        orchestrator.dropdown.open.side_effect = [InteractionFailure("OPEN FILTER DROPDOWN (marke)"), None]

        await orchestrator.apply_facet(FacetRequest.for_axis(FacetAxis.MARKE, "Dior"), RetryBudget(1))

        assert orchestrator.dropdown.open.await_count == 2
        mock_locator.reload.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_exhaustion_names_facet_and_value(self, orchestrator, mock_locator):
        mock_locator.wait_until.side_effect = WaitTimeout("summary never updated")

        with pytest.raises(InteractionFailure) as exc_info:
            await orchestrator.apply_facet(FacetRequest.for_axis(FacetAxis.MARKE, "Chanel"), RetryBudget(2))

        assert "marke" in exc_info.value.step
        assert "Chanel" in exc_info.value.step
        assert orchestrator.dropdown.open.await_count == 3
        assert mock_locator.reload.await_count == 2

    @pytest.mark.asyncio
    async def test_wait_for_facet_enabled_is_case_insensitive(self, mock_locator, selectors):
        orchestrator = FilterOrchestrator(mock_locator, selectors, confirm_timeout=1)
        orchestrator.selected_facets_text = AsyncMock(return_value="PARFUM Neu")

        async def _wait_until(condition, timeout=None, description=""):
            assert await condition()
            return True

        mock_locator.wait_until.side_effect = _wait_until

        await orchestrator.wait_for_facet_enabled("parfum")

        mock_locator.wait_until.assert_awaited_once()


class TestApplyAll:
    @pytest.mark.asyncio
    async def test_scenario_category_and_highlight_only(self, orchestrator):
        """Only the requested dropdowns open, in axis order, and the summary holds both values."""
        test_case = FacetTestCase(produktart="Parfum", highlight="Neu")
        manager = MagicMock()
        manager.attach_mock(orchestrator.dropdown.open, "open")
        manager.attach_mock(orchestrator.dropdown.select, "select")
        manager.attach_mock(orchestrator.dropdown.close, "close")

        await orchestrator.apply_all(test_case.to_requests())

        opened = [c.args[0] for c in orchestrator.dropdown.open.await_args_list]
        selected = [c.args[0] for c in orchestrator.dropdown.select.await_args_list]
        assert opened == ["produktart", "Highlights"]
        assert selected == ["Parfum", "Neu"]
        assert orchestrator.dropdown.close.await_count == 2
        # each dropdown is closed before the next one opens
        names = [c[0] for c in manager.mock_calls]
        assert names == ["open", "select", "close", "open", "select", "close"]

        results = Verifier().assert_facets_applied(test_case.to_requests(), "parfum NEU")
        assert [r.passed for r in results] == [True, True]

    @pytest.mark.asyncio
    async def test_requests_applied_in_fixed_axis_order(self, orchestrator):
        requests = [
            FacetRequest.for_axis(FacetAxis.FUR_WEN, "Weiblich"),
            FacetRequest.for_axis(FacetAxis.MARKE, "Dior"),
            FacetRequest.for_axis(FacetAxis.PRODUKTART, "Parfum"),
        ]

        await orchestrator.apply_all(requests)

        assert [c.args[0] for c in orchestrator.dropdown.open.await_args_list] == ["produktart", "marke", "Für Wen"]

    @pytest.mark.asyncio
    async def test_all_empty_opens_nothing(self, orchestrator):
        await orchestrator.apply_all(FacetTestCase().to_requests())

        orchestrator.dropdown.open.assert_not_awaited()
