from datetime import date

import pytest

from djazair.core.models import LegQuery, LegRole
from djazair.providers.base import ProviderError, ProviderUnavailable, RateLimited
from djazair.services.gateway import ProviderGateway, RetryPolicy, linear_backoff

QUERY = LegQuery("CDG", "ALG", date(2025, 9, 17))


def test_linear_backoff():
    backoff = linear_backoff(2.0)
    assert [backoff(n) for n in (1, 2, 3)] == [2.0, 4.0, 6.0]


def test_rate_limit_is_retried_with_backoff(fake_provider, recording_sleep, cdg_alg_morning):
    fake_provider.add(cdg_alg_morning)
    fake_provider.errors = [RateLimited("slow down"), RateLimited("slow down")]
    gateway = ProviderGateway(fake_provider, sleep=recording_sleep)

    offers = gateway.query(QUERY)

    assert offers == [cdg_alg_morning]
    assert recording_sleep.delays == [2.0, 4.0]
    assert len(fake_provider.calls) == 3


def test_exhausted_rate_limit_yields_empty_leg(fake_provider, recording_sleep):
    fake_provider.always_raise = RateLimited("slow down")
    gateway = ProviderGateway(fake_provider, sleep=recording_sleep)

    assert gateway.query(QUERY) == []
    # No sleep after the final attempt.
    assert recording_sleep.delays == [2.0, 4.0]
    assert len(fake_provider.calls) == 3


def test_other_errors_retry_without_waiting(fake_provider, recording_sleep, cdg_alg_morning):
    fake_provider.add(cdg_alg_morning)
    fake_provider.errors = [ProviderError("bad gateway"), ValueError("garbled payload")]
    gateway = ProviderGateway(fake_provider, sleep=recording_sleep)

    assert gateway.query(QUERY) == [cdg_alg_morning]
    assert recording_sleep.delays == []


def test_persistent_errors_give_up_after_max_attempts(fake_provider, recording_sleep):
    fake_provider.always_raise = ProviderError("bad gateway")
    gateway = ProviderGateway(fake_provider, policy=RetryPolicy(max_attempts=5),
                              sleep=recording_sleep)

    assert gateway.query(QUERY) == []
    assert len(fake_provider.calls) == 5


def test_unavailable_provider_is_not_retried(fake_provider, recording_sleep):
    fake_provider.always_raise = ProviderUnavailable("no credentials")
    gateway = ProviderGateway(fake_provider, sleep=recording_sleep)

    with pytest.raises(ProviderUnavailable):
        gateway.query(QUERY)
    assert len(fake_provider.calls) == 1


def test_ensure_available(fake_provider):
    gateway = ProviderGateway(fake_provider)
    gateway.ensure_available()

    fake_provider.available = False
    with pytest.raises(ProviderUnavailable) as exc:
        gateway.ensure_available()
    assert exc.value.status_code == 503


def test_query_many_returns_offers_per_role(fake_provider, cdg_alg_morning, alg_dxb_afternoon):
    fake_provider.add(cdg_alg_morning)
    fake_provider.add(alg_dxb_afternoon)
    gateway = ProviderGateway(fake_provider)

    result = gateway.query_many({
        LegRole.OUTBOUND_TO_HUB: QUERY,
        LegRole.OUTBOUND_FROM_HUB: LegQuery("ALG", "DXB", date(2025, 9, 17)),
        LegRole.RETURN_TO_HUB: LegQuery("DXB", "ALG", date(2025, 9, 24)),
    })

    assert result == {
        LegRole.OUTBOUND_TO_HUB: [cdg_alg_morning],
        LegRole.OUTBOUND_FROM_HUB: [alg_dxb_afternoon],
        LegRole.RETURN_TO_HUB: [],
    }


def test_retry_after_header_extends_backoff(fake_provider, recording_sleep, cdg_alg_morning):
    fake_provider.add(cdg_alg_morning)
    fake_provider.errors = [RateLimited("slow down", retry_after=5.0),
                            RateLimited("slow down", retry_after=1.0)]
    gateway = ProviderGateway(fake_provider, sleep=recording_sleep)

    assert gateway.query(QUERY) == [cdg_alg_morning]
    assert recording_sleep.delays == [5.0, 4.0]
