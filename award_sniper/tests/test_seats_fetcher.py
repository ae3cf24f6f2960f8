from unittest.mock import Mock, patch

import pytest
import requests

from award_sniper.cache import TTLCache
from award_sniper.seats_fetcher import SeatsAeroFetcher


def make_payload():
    return {
        "data": [
            {
                "Source": "flyingblue",
                "Date": "2026-05-27",
                "Route": {"OriginAirport": "OPO", "DestinationAirport": "ORD"},
                "YAvailable": True,
                "YMileageCostRaw": 31000,
                "YRemainingSeats": 4,
                "YDirect": False,
                "YAirlines": "AF, KL",
            },
            {
                "Source": "american",
                "Date": "2026-05-27",
                "YAvailable": True,
                "YMileageCostRaw": 22500,
                "YRemainingSeats": 2,
                "YDirect": True,
                "YAirlines": "AA",
            },
            {
                "Source": "united",
                "Date": "2026-05-27",
                "YAvailable": False,
                "YMileageCostRaw": 0,
                "JAvailable": True,
            },
            {
                "Source": "delta",
                "YAvailable": True,
                "YMileageCost": "bad",
            },
        ]
    }


def make_fetcher(key="key"):
    return SeatsAeroFetcher(key, cache=TTLCache(30 * 60))


@patch("requests.get")
def test_economy_entries_sorted_by_miles(mock_get):
    mock_get.return_value = Mock(status_code=200, json=Mock(return_value=make_payload()))

    result = make_fetcher().availability("opo", "ord", "2026-05-27")

    assert result.status == "ok"
    assert [e.program for e in result.results] == ["american", "flyingblue"]
    assert [e.miles for e in result.results] == [22500, 31000]
    assert result.results[0].stops == 0
    assert result.results[1].stops is None
    assert result.results[1].carriers == "AF, KL"
    params = mock_get.call_args.kwargs["params"]
    assert params["origin_airport"] == "OPO"
    assert mock_get.call_args.kwargs["headers"]["Partner-Authorization"] == "key"

    body = result.to_dict()
    assert body["source"] == "seats.aero"
    assert body["results"][0]["seatsRemaining"] == 2


@patch("requests.get")
def test_key_required_is_not_an_error(mock_get):
    result = make_fetcher(key="").availability("OPO", "ORD", "2026-05-27")
    assert result.status == "key_required"
    assert result.results == []
    mock_get.assert_not_called()


@patch("requests.get")
def test_upstream_error(mock_get):
    mock_get.return_value = Mock(status_code=401, text="bad key")
    result = make_fetcher().availability("OPO", "ORD", "2026-05-27")
    assert result.status == "error"
    assert "401" in result.message

    mock_get.side_effect = requests.Timeout("slow")
    result = make_fetcher().availability("OPO", "ORD", "2026-05-27")
    assert result.status == "error"


@patch("requests.get")
def test_ok_empty_list_is_cached(mock_get):
    mock_get.return_value = Mock(status_code=200, json=Mock(return_value={"data": []}))
    fetcher = make_fetcher()
    first = fetcher.availability("OPO", "ORD", "2026-05-27")
    second = fetcher.availability("OPO", "ORD", "2026-05-27")
    assert first.status == second.status == "ok"
    assert second.results == []
    assert second.fetched_at == first.fetched_at
    assert mock_get.call_count == 1


def test_injected_empty_cache_is_used():
    cache = TTLCache(30 * 60)
    assert SeatsAeroFetcher("key", cache=cache).cache is cache


@patch("requests.get")
def test_bad_seat_count_keeps_entry(mock_get):
    payload = {
        "data": [
            {
                "Source": "american",
                "YAvailable": True,
                "YMileageCostRaw": 22500,
                "YRemainingSeats": "n/a",
                "Route": "OPO-ORD",
                "YAirlines": None,
            },
            "garbage",
        ]
    }
    mock_get.return_value = Mock(status_code=200, json=Mock(return_value=payload))

    result = make_fetcher().availability("OPO", "ORD", "2026-05-27")

    assert result.status == "ok"
    assert len(result.results) == 1
    assert result.results[0].seats_remaining == 0
    assert result.results[0].carriers == ""


@pytest.mark.parametrize("payload", [[], "oops", {"data": {"Source": "american"}}])
@patch("requests.get")
def test_unexpected_payload_is_an_error(mock_get, payload):
    mock_get.return_value = Mock(status_code=200, json=Mock(return_value=payload))

    result = make_fetcher().availability("OPO", "ORD", "2026-05-27")

    assert result.status == "error"
    assert result.results == []
    assert result.message == "Unexpected availability payload"
