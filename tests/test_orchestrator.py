"""
Tests for the Batch Orchestrator.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from pipeline.models import AnalyzeRequest, AssessmentResult, Listing
from pipeline.orchestrator import BatchOrchestrator, build_orchestrator
from services.exceptions import InvalidRequestError, MissingAPIKeyError
from services.rate_limiter import FixedDelayLimiter, RateLimits
from tests.fakes import API_URL, api_item, make_claude, verdict


def make_listing(item_id: str, seller: str = "alice") -> Listing:
    return Listing(
        item_id=item_id,
        url=f"https://sidelineswap.test/gear/{item_id}",
        title=f"Bauer stick {item_id}",
        image_urls=[f"https://img.test/{item_id}.jpg"],
        seller_username=seller,
    )


def make_orchestrator(listings_by_seller, scores, rate_limits=None, enrich_limit=10, configured=True):
    """Orchestrator over mocked stages. scores maps item_id -> confidence."""

    async def fetch(seller):
        outcome = listings_by_seller.get(seller, [])
        if isinstance(outcome, Exception):
            raise outcome
        return list(outcome)

    async def assess(listing):
        return AssessmentResult(confidence=scores[listing.item_id], reason=f"score {scores[listing.item_id]}")

    fetcher = MagicMock()
    fetcher.fetch = AsyncMock(side_effect=fetch)
    enricher = MagicMock()
    enricher.enrich = AsyncMock(side_effect=lambda listing: listing)
    assessor = MagicMock()
    assessor.is_configured = configured
    assessor.assess = AsyncMock(side_effect=assess)

    return BatchOrchestrator(
        fetcher=fetcher,
        enricher=enricher,
        assessor=assessor,
        rate_limits=rate_limits or RateLimits.disabled(),
        enrich_limit=enrich_limit,
    )


class TestValidation:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("usernames", [[], [""], ["   ", "\t"]])
    async def test_no_usable_usernames(self, usernames):
        orchestrator = make_orchestrator({}, {})

        with pytest.raises(InvalidRequestError):
            await orchestrator.run(AnalyzeRequest(usernames=usernames))

        orchestrator.fetcher.fetch.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_credential(self):
        orchestrator = make_orchestrator({"alice": [make_listing("1")]}, {"1": 90}, configured=False)

        with pytest.raises(MissingAPIKeyError):
            await orchestrator.run(AnalyzeRequest(usernames=["alice"]))

        orchestrator.fetcher.fetch.assert_not_called()

    @pytest.mark.asyncio
    async def test_usernames_trimmed_and_deduplicated(self):
        orchestrator = make_orchestrator({"alice": [make_listing("1")]}, {"1": 90})

        await orchestrator.run(AnalyzeRequest(usernames=[" alice ", "alice", ""]))

        assert [c.args[0] for c in orchestrator.fetcher.fetch.call_args_list] == ["alice"]


class TestRun:

    @pytest.mark.asyncio
    async def test_threshold_filters(self):
        orchestrator = make_orchestrator(
            {"alice": [make_listing("1"), make_listing("2")]},
            {"1": 30, "2": 70},
        )

        response = await orchestrator.run(AnalyzeRequest(usernames=["alice"], threshold=50))

        assert [r.item_id for r in response.results] == ["2"]
        assert response.results[0].confidence == 70
        assert response.results[0].image_url == "https://img.test/2.jpg"
        assert response.errors is None

    @pytest.mark.asyncio
    async def test_threshold_is_inclusive(self):
        orchestrator = make_orchestrator({"alice": [make_listing("1")]}, {"1": 50})

        response = await orchestrator.run(AnalyzeRequest(usernames=["alice"], threshold=50))

        assert len(response.results) == 1

    @pytest.mark.asyncio
    async def test_seller_without_listings(self):
        orchestrator = make_orchestrator({"alice": [make_listing("1")]}, {"1": 80})

        response = await orchestrator.run(AnalyzeRequest(usernames=["ghost", "alice"]))

        assert [r.item_id for r in response.results] == ["1"]
        assert response.errors == ["No hockey stick listings found for seller: ghost"]

    @pytest.mark.asyncio
    async def test_failing_seller_does_not_stop_batch(self):
        orchestrator = make_orchestrator(
            {"broken": RuntimeError("page layout changed"), "alice": [make_listing("1")]},
            {"1": 75},
        )

        response = await orchestrator.run(AnalyzeRequest(usernames=["broken", "alice"]))

        assert len(response.results) == 1
        assert response.errors == ["Failed to analyze seller broken: page layout changed"]

    @pytest.mark.asyncio
    async def test_sorted_descending_and_stable(self):
        orchestrator = make_orchestrator(
            {
                "alice": [make_listing("a1"), make_listing("a2")],
                "bob": [make_listing("b1", "bob"), make_listing("b2", "bob")],
            },
            {"a1": 60, "a2": 90, "b1": 60, "b2": 95},
        )

        response = await orchestrator.run(AnalyzeRequest(usernames=["alice", "bob"], threshold=0))

        assert [r.item_id for r in response.results] == ["b2", "a2", "a1", "b1"]
        confidences = [r.confidence for r in response.results]
        assert confidences == sorted(confidences, reverse=True)

    @pytest.mark.asyncio
    async def test_repeatable(self):
        listings = {"alice": [make_listing("1"), make_listing("2"), make_listing("3")]}
        scores = {"1": 55, "2": 90, "3": 55}

        first = await make_orchestrator(listings, scores).run(AnalyzeRequest(usernames=["alice"]))
        second = await make_orchestrator(listings, scores).run(AnalyzeRequest(usernames=["alice"]))

        assert first.model_dump() == second.model_dump()

    @pytest.mark.asyncio
    async def test_enrich_limit(self):
        orchestrator = make_orchestrator(
            {"alice": [make_listing(str(i)) for i in range(5)]},
            {str(i): 80 for i in range(5)},
            enrich_limit=2,
        )

        response = await orchestrator.run(AnalyzeRequest(usernames=["alice"]))

        assert orchestrator.enricher.enrich.await_count == 2
        assert orchestrator.assessor.assess.await_count == 5
        assert len(response.results) == 5

    @pytest.mark.asyncio
    async def test_rate_limiters(self):
        sleeps = []

        async def fake_sleep(delay):
            sleeps.append(delay)

        limits = RateLimits(
            marketplace=FixedDelayLimiter("marketplace", 0),
            model=FixedDelayLimiter("model", 1.0, sleep=fake_sleep),
            seller=FixedDelayLimiter("seller", 2.0, sleep=fake_sleep),
        )
        orchestrator = make_orchestrator(
            {"alice": [make_listing("1"), make_listing("2")], "bob": [make_listing("3", "bob")]},
            {"1": 10, "2": 20, "3": 30},
            rate_limits=limits,
        )

        await orchestrator.run(AnalyzeRequest(usernames=["alice", "bob"]))

        assert limits.model.waits == 3
        assert limits.seller.waits == 2
        assert sleeps == [1.0, 1.0, 2.0, 1.0, 2.0]

    @pytest.mark.asyncio
    async def test_stats(self):
        orchestrator = make_orchestrator({"alice": [make_listing("1")]}, {"1": 10})

        await orchestrator.run(AnalyzeRequest(usernames=["alice", "ghost"]))

        stats = orchestrator.get_stats()
        assert stats["sellers_processed"] == 2
        assert stats["sellers_without_listings"] == 1
        assert stats["listings_assessed"] == 1
        assert stats["results_kept"] == 0


class TestBuiltPipeline:

    @pytest.mark.asyncio
    async def test_end_to_end(self, upstream, settings, rate_limits):
        upstream.add_json(f"{API_URL}/facet_items", {"data": [
            api_item(1, "Bauer Vapor FlyLite", price=60),
            api_item(2, "CCM Jetspeed FT5", price=250),
        ]})
        claude = make_claude(verdict(30, "Normal wear"), verdict(70, "Logo spacing is off"))
        orchestrator = build_orchestrator(settings, upstream.client(), claude, rate_limits)

        response = await orchestrator.run(AnalyzeRequest(usernames=["alice"], threshold=50))

        assert len(response.results) == 1
        record = response.results[0]
        assert record.item_id == "2"
        assert record.title == "CCM Jetspeed FT5"
        assert record.reason == "Logo spacing is off"
        assert record.url == "https://sidelineswap.test/gear/2"
        assert response.errors is None
        assert claude.messages.create.await_count == 2

    @pytest.mark.asyncio
    async def test_unknown_seller(self, upstream, settings, rate_limits):
        claude = make_claude(verdict(99))
        orchestrator = build_orchestrator(settings, upstream.client(), claude, rate_limits)

        response = await orchestrator.run(AnalyzeRequest(usernames=["ghost"]))

        assert response.results == []
        assert response.errors == ["No hockey stick listings found for seller: ghost"]
        claude.messages.create.assert_not_called()
