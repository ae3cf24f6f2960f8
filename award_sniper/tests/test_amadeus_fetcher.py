from unittest.mock import Mock, patch

import requests

from award_sniper.amadeus_fetcher import AmadeusFetcher, classify_error
from award_sniper.cache import TTLCache


class Clock:
    def __init__(self, now=1_000_000.0):
        self.now = now

    def __call__(self):
        return self.now


def make_token_response():
    resp = Mock(status_code=200)
    resp.json.return_value = {"access_token": "tok", "expires_in": 1799}
    return resp


def make_offers_response(totals):
    resp = Mock(status_code=200)
    resp.json.return_value = {
        "data": [{"price": {"total": t, "currency": "USD"}} for t in totals]
    }
    return resp


def make_fetcher(clock=None):
    cache = TTLCache(2 * 60 * 60, clock=clock or Clock())
    return AmadeusFetcher("id", "secret", "https://amadeus.test", currency="USD", cache=cache)


@patch("requests.post")
@patch("requests.get")
def test_lowest_fare(mock_get, mock_post):
    mock_post.return_value = make_token_response()
    mock_get.return_value = make_offers_response(["812.40", "612.00", "bad", "0", "655.10"])

    result = make_fetcher().lowest_fare("opo", "ord", "2026-05-27")

    assert result.price == 612.0
    assert result.source == "amadeus"
    assert result.freshness == "fresh"
    assert result.error is None
    params = mock_get.call_args.kwargs["params"]
    assert params["originLocationCode"] == "OPO"
    assert params["destinationLocationCode"] == "ORD"
    assert params["adults"] == 1
    assert mock_get.call_args.kwargs["headers"]["Authorization"] == "Bearer tok"


@patch("requests.post")
@patch("requests.get")
def test_cache_hit_keeps_first_fetch_timestamp(mock_get, mock_post):
    mock_post.return_value = make_token_response()
    mock_get.return_value = make_offers_response(["612.00"])
    clock = Clock()
    fetcher = make_fetcher(clock)

    first = fetcher.lowest_fare("OPO", "ORD", "2026-05-27")
    clock.now += 60 * 60
    second = fetcher.lowest_fare("OPO", "ORD", "2026-05-27")

    assert mock_get.call_count == 1
    assert second.price == 612.0
    assert second.source == "amadeus (cached)"
    assert second.fetched_at == first.fetched_at


@patch("requests.post")
@patch("requests.get")
def test_no_offers(mock_get, mock_post):
    mock_post.return_value = make_token_response()
    mock_get.return_value = make_offers_response([])

    result = make_fetcher().lowest_fare("OPO", "ORD", "2026-05-27")
    assert result.price is None
    assert result.error == "No flights found for this route/date"
    assert result.freshness == "unavailable"


@patch("requests.post")
@patch("requests.get")
def test_stale_value_served_on_upstream_error(mock_get, mock_post):
    mock_post.return_value = make_token_response()
    mock_get.return_value = make_offers_response(["612.00"])
    clock = Clock()
    fetcher = make_fetcher(clock)
    first = fetcher.lowest_fare("OPO", "ORD", "2026-05-27")

    clock.now += 3 * 60 * 60
    mock_get.return_value = Mock(status_code=429, text="Too many requests")
    result = fetcher.lowest_fare("OPO", "ORD", "2026-05-27")

    assert result.price == 612.0
    assert result.warning.startswith("Rate limit")
    assert result.fetched_at == first.fetched_at
    assert result.freshness == "stale"
    assert "stale" in result.source


@patch("requests.post")
@patch("requests.get")
def test_error_without_cache(mock_get, mock_post):
    mock_post.return_value = make_token_response()
    mock_get.return_value = Mock(status_code=503, text="down")

    result = make_fetcher().lowest_fare("OPO", "ORD", "2026-05-27")
    assert result.price is None
    assert result.error == "Amadeus server error – try again shortly"
    assert result.to_dict()["error"] == result.error


@patch("requests.post")
@patch("requests.get")
def test_network_error_is_not_raised(mock_get, mock_post):
    mock_post.return_value = make_token_response()
    mock_get.side_effect = requests.ConnectionError("boom")

    result = make_fetcher().lowest_fare("OPO", "ORD", "2026-05-27")
    assert result.price is None
    assert result.error == "Price temporarily unavailable"


@patch("requests.post")
def test_auth_failure(mock_post):
    mock_post.return_value = Mock(status_code=401, text="unauthorized")

    result = make_fetcher().lowest_fare("OPO", "ORD", "2026-05-27")
    assert result.error == "API auth error – contact site owner"


@patch("requests.get")
def test_missing_credentials(mock_get):
    fetcher = AmadeusFetcher("", "", "https://amadeus.test", cache=TTLCache(60))
    result = fetcher.lowest_fare("OPO", "ORD", "2026-05-27")
    assert result.price is None
    assert result.error == "Price search is not configured"
    mock_get.assert_not_called()


@patch("requests.post")
@patch("requests.get")
def test_token_reused(mock_get, mock_post):
    mock_post.return_value = make_token_response()
    mock_get.return_value = make_offers_response(["612.00"])
    fetcher = make_fetcher()
    fetcher.lowest_fare("OPO", "ORD", "2026-05-27")
    fetcher.lowest_fare("AMS", "MSP", "2026-07-27")
    assert mock_post.call_count == 1
    assert mock_get.call_count == 2


def test_classify_error():
    assert classify_error(429).startswith("Rate limit")
    assert classify_error(401).startswith("API auth error")
    assert classify_error(400) == "No flights found for this route/date"
    assert classify_error(500).startswith("Amadeus server error")
    assert classify_error(418) == "Price temporarily unavailable"


def test_injected_empty_cache_is_used():
    cache = TTLCache(60, clock=Clock())
    fetcher = AmadeusFetcher("id", "secret", "https://amadeus.test", cache=cache)
    assert fetcher.cache is cache


@patch("requests.post")
@patch("requests.get")
def test_malformed_offers_payload(mock_get, mock_post):
    mock_post.return_value = make_token_response()
    mock_get.return_value = Mock(status_code=200, json=Mock(return_value=["not", "an", "object"]))

    result = make_fetcher().lowest_fare("OPO", "ORD", "2026-05-27")
    assert result.price is None
    assert result.error == "Unexpected flight-offers payload"
