import pytest

from loyalty.services.pagination import PaginationOptions, envelope, normalize


def test_defaults_when_missing():
    assert normalize(None, None) == PaginationOptions(page=1, limit=10, skip=0)


def test_string_values_are_parsed():
    options = normalize("3", "20")
    assert (options.page, options.limit, options.skip) == (3, 20, 40)


@pytest.mark.parametrize("raw_page", ["abc", "", "0", "-4", "1.5"])
def test_invalid_page_falls_back_to_first(raw_page):
    assert normalize(raw_page, "10").page == 1


@pytest.mark.parametrize("raw_limit, expected", [
    ("abc", 10),
    ("0", 10),
    ("-5", 1),
    ("500", 100),
    ("100", 100),
    ("1", 1),
])
def test_limit_is_bounded(raw_limit, expected):
    assert normalize("1", raw_limit).limit == expected


def test_custom_default_limit():
    assert normalize(None, None, default_limit=25).limit == 25


def test_envelope_middle_page():
    page = envelope(["a", "b"], total=25, options=normalize("2", "10"))

    assert page["data"] == ["a", "b"]
    assert page["pagination"] == {
        "total": 25,
        "page": 2,
        "limit": 10,
        "totalPages": 3,
        "hasNextPage": True,
        "hasPrevPage": True,
    }


def test_envelope_last_page():
    pagination = envelope([], total=20, options=normalize("2", "10"))["pagination"]
    assert pagination["totalPages"] == 2
    assert pagination["hasNextPage"] is False
    assert pagination["hasPrevPage"] is True


def test_envelope_empty_result():
    pagination = envelope([], total=0, options=normalize(None, None))["pagination"]
    assert pagination["totalPages"] == 0
    assert pagination["hasNextPage"] is False
    assert pagination["hasPrevPage"] is False


@pytest.mark.parametrize("raw, expected", [("2.5", 2), ("12abc", 12), (" 7", 7), ("+3", 3)])
def test_leading_integer_is_used(raw, expected):
    options = normalize(raw, raw)
    assert (options.page, options.limit) == (expected, expected)
