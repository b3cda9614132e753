import threading
from datetime import timedelta

import pytest

from common.exceptions import ExternalServiceError
from common.settings import Settings
from forecasting.policy import ForecastPolicy, forecast_policy_from_settings
from forecasting.service import DemandForecastService
from routing.coordinates import Place
from store.change_feed import FORECASTS
from conftest import REFERENCE_TIME, make_ride


@pytest.fixture
def busy_store(store):
    for index in range(6):
        store.insert_ride(
            make_ride(
                f"r{index}",
                request_time=REFERENCE_TIME - timedelta(hours=3 - index // 2),
                zone="Main Gate",
            )
        )
    store.insert_ride(make_ride("elsewhere", request_time=REFERENCE_TIME, zone="Sports Complex"))
    return store


def test_cycle_forecasts_every_registry_zone_plus_new_ones(busy_store):
    service = DemandForecastService(busy_store, clock=lambda: REFERENCE_TIME)
    results = service.run_cycle()

    assert list(results) == ["Main Gate", "Hostel Area", "Lab Block", "Girls Hostel", "Sports Complex"]
    assert results["Main Gate"].insufficient_data is False
    assert results["Hostel Area"].insufficient_data is True
    assert results["Sports Complex"].insufficient_data is True
    assert busy_store.latest_forecasts() == results


def test_each_cycle_replaces_the_previous_forecast_set(busy_store, feed):
    service = DemandForecastService(busy_store, clock=lambda: REFERENCE_TIME)
    with feed.subscribe(FORECASTS) as subscription:
        service.run_cycle()
        service.run_cycle(hours_ahead=3)

        assert len(subscription.drain()) == 10
    assert all(result.hours_ahead == 3 for result in busy_store.latest_forecasts().values())


class _FailingStore:
    def list_rides(self, status=None):
        raise ExternalServiceError("backend unreachable")


def test_periodic_loop_survives_store_outages_and_stops_on_request():
    stop = threading.Event()
    calls = []

    class _Store(_FailingStore):
        def list_rides(self, status=None):
            calls.append(1)
            if len(calls) >= 3:
                stop.set()
            raise ExternalServiceError("backend unreachable")

    policy = ForecastPolicy(cycle_interval_seconds=1)
    service = DemandForecastService(_Store(), policy=policy, clock=lambda: REFERENCE_TIME)

    thread = threading.Thread(target=service.run_periodically, args=(stop,))
    thread.start()
    thread.join(timeout=10)

    assert not thread.is_alive()
    assert len(calls) == 3


def test_single_cycle_propagates_store_failures():
    service = DemandForecastService(_FailingStore(), clock=lambda: REFERENCE_TIME)
    with pytest.raises(ExternalServiceError):
        service.run_cycle()


def test_rides_without_a_zone_are_mapped_by_pickup(store):
    store.insert_ride(make_ride("a", pickup=Place("Lab Block")))
    results = DemandForecastService(store, clock=lambda: REFERENCE_TIME).run_cycle()
    assert set(results) == {"Main Gate", "Hostel Area", "Lab Block", "Girls Hostel"}


def test_cycle_interval_comes_from_the_deployment_settings(monkeypatch, store):
    monkeypatch.setenv("FORECAST_INTERVAL_SECONDS", "45")
    service = DemandForecastService(store)
    assert service.policy.cycle_interval_seconds == 45

    explicit = DemandForecastService(store, policy=ForecastPolicy(cycle_interval_seconds=7))
    assert explicit.policy.cycle_interval_seconds == 7


def test_forecast_policy_from_settings_keeps_the_other_defaults():
    policy = forecast_policy_from_settings(Settings(forecast_interval_seconds=90))
    assert policy.cycle_interval_seconds == 90
    assert policy.smoothing_alpha == ForecastPolicy().smoothing_alpha
