import pytest

from errors import ConfigurationError, UpstreamError, UpstreamFormatError
from fakes import FakeTavily
from neighborhood.search_service import DEFAULT_SEARCH_OPTIONS, SearchService, build_search_query


def test_search_passes_default_options_and_returns_body():
    body = {"query": "2 bed Toronto", "answer": "Several listings", "results": [{"title": "A"}], "response_time": 1.2}
    client = FakeTavily(response=body)

    assert SearchService(client=client).search("2 bed Toronto") == body
    query, options = client.calls[0]
    assert query == "2 bed Toronto"
    assert options == DEFAULT_SEARCH_OPTIONS


def test_overrides_win_over_defaults():
    client = FakeTavily(response={"results": []})
    SearchService(client=client).search("q", max_results=3)
    assert client.calls[0][1]["max_results"] == 3


@pytest.mark.parametrize("response", [None, {"answer": "x"}, {"results": "nope"}, ["not", "a", "dict"]])
def test_invalid_result_shape(response):
    with pytest.raises(UpstreamFormatError, match="Invalid search results format"):
        SearchService(client=FakeTavily(response=response)).search("q")


def test_client_failure_is_wrapped():
    with pytest.raises(UpstreamError):
        SearchService(client=FakeTavily(error=RuntimeError("connection reset"))).search("q")


def test_missing_key():
    with pytest.raises(ConfigurationError):
        SearchService(None).search("q")


def test_build_search_query_full():
    query = build_search_query(
        country="Canada",
        city="Toronto",
        location="Downtown",
        property_type="Condo",
        price_min=1500,
        price_max=2500,
        time_range="week",
        additional="pet friendly",
    )
    assert query == (
        'Find homes in Canada, Toronto (specific location: Downtown) of type "Condo" '
        "with price between $1500 and $2500 available in the time range: week. "
        "Additional requirements: pet friendly"
    )


def test_build_search_query_single_bounds():
    assert build_search_query(city="Ottawa", price_max=2000) == "Find homes in Ottawa with price up to $2000."
    assert build_search_query(price_min=900) == "Find homes with price from $900."
    assert build_search_query() == "Find homes."
