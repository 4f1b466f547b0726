# Unit tests for permissive search-parameter parsing.
import pytest

from estatefinder.listing_query import INT64_MAX, MAX_LIMIT, MAX_PAGE, ListingSearch, parse_float, parse_int


def test_defaults_when_nothing_is_given():
    s = ListingSearch.from_params({})
    assert (s.page, s.limit, s.sort, s.offset) == (1, 10, "newest", 0)
    assert s.keywords is None and s.price_min is None and s.bedrooms is None


@pytest.mark.parametrize(
    "raw,expected",
    [
        ({"page": "3", "limit": "20"}, (3, 20, 40)),
        ({"page": "0", "limit": "-5"}, (1, 10, 0)),
        ({"page": "abc", "limit": "x"}, (1, 10, 0)),
        ({"page": "2", "limit": "5000"}, (2, MAX_LIMIT, MAX_LIMIT)),
    ],
)
def test_page_and_limit_normalization(raw, expected):
    s = ListingSearch.from_params(raw)
    assert (s.page, s.limit, s.offset) == expected


def test_malformed_numbers_are_dropped_not_rejected():
    s = ListingSearch.from_params(
        {"price_min": "cheap", "price_max": "nan", "bedrooms": "two", "bathrooms": " 2 ", "agent_id": ""}
    )
    assert s.price_min is None
    assert s.price_max is None
    assert s.bedrooms is None
    assert s.bathrooms == 2
    assert s.agent_id is None


def test_text_filters_are_trimmed_and_blank_means_absent():
    s = ListingSearch.from_params({"keywords": "  pool ", "city": "   ", "property_type": "house"})
    assert s.keywords == "pool"
    assert s.city is None
    assert s.property_type == "house"


def test_unknown_sort_falls_back_to_newest():
    assert ListingSearch.from_params({"sort": "cheapest"}).sort == "newest"
    assert ListingSearch.from_params({"sort": "price_desc"}).sort == "price_desc"


def test_number_helpers():
    assert parse_int("42") == 42
    assert parse_int(None) is None
    assert parse_float("1e3") == 1000.0
    assert parse_float("inf") is None


def test_leading_integer_is_read_like_parse_int():
    s = ListingSearch.from_params({"page": "2.5", "bedrooms": "3.0", "bathrooms": "2baths", "limit": "20.9"})
    assert (s.page, s.bedrooms, s.bathrooms, s.limit) == (2, 3, 2, 20)
    assert parse_int("-4") == -4
    assert parse_int("abc3") is None


def test_out_of_range_integers_are_treated_as_absent():
    huge = "99999999999999999999"
    s = ListingSearch.from_params({"page": huge, "limit": huge, "bedrooms": huge, "bathrooms": huge, "agent_id": huge})
    assert (s.page, s.limit) == (1, 10)
    assert s.bedrooms is None and s.bathrooms is None and s.agent_id is None

    # Fits 64 bits but not the 32-bit INTEGER columns
    assert ListingSearch.from_params({"agent_id": str(2**31)}).agent_id is None
    assert parse_int(str(INT64_MAX)) == INT64_MAX
    assert parse_int(str(INT64_MAX + 1)) is None


def test_page_is_capped_so_offset_fits_64_bits():
    s = ListingSearch.from_params({"page": str(INT64_MAX), "limit": "5"})
    assert s.page == MAX_PAGE
    assert s.offset <= INT64_MAX
    s = ListingSearch.from_params({"page": str(INT64_MAX), "limit": str(MAX_LIMIT)})
    assert s.offset <= INT64_MAX
