from urllib.parse import parse_qsl, urlsplit

from revgeo.geocoding.query import LANGUAGE_PARAM, build_request, reverse_params

BASE_URL = "https://nominatim.example.org/reverse"
EMAIL = "maintainer@example.org"


def _build(params, language_provider=None):
    return build_request(params, base_url=BASE_URL, contact_email=EMAIL, language_provider=language_provider)


def test_caller_params_are_not_mutated() -> None:
    params = {"lat": "51.23707", "lon": "-0.589669"}

    _build(params, language_provider=lambda: "en-gb")

    assert params == {"lat": "51.23707", "lon": "-0.589669"}


def test_required_params_always_win() -> None:
    request = _build({"lat": "1.0", "lon": "2.0", "format": "xml", "email": "x@y", "addressdetails": "0", "zoom": "10"})
    params = request.as_dict()

    assert params["format"] == "json"
    assert params["email"] == EMAIL
    assert params["addressdetails"] == "1"
    assert params["zoom"] == "10"


def test_language_from_provider_when_absent() -> None:
    request = _build({"lat": "1.0", "lon": "2.0"}, language_provider=lambda: "fr-fr")

    assert request.as_dict()[LANGUAGE_PARAM] == "fr-fr"


def test_explicit_language_skips_provider() -> None:
    def _provider():
        raise AssertionError("provider must not be consulted")

    request = _build({"lat": "1.0", "lon": "2.0", LANGUAGE_PARAM: "de"}, language_provider=_provider)

    assert request.as_dict()[LANGUAGE_PARAM] == "de"


def test_empty_language_is_omitted() -> None:
    request = _build({"lat": "1.0", "lon": "2.0"}, language_provider=lambda: "")

    assert LANGUAGE_PARAM not in request.as_dict()


def test_none_values_are_omitted() -> None:
    request = _build({"lat": "1.0", "lon": "2.0", "zoom": None})

    assert "zoom" not in request.as_dict()


def test_params_are_sorted_and_url_matches() -> None:
    request = _build({"lon": "2.0", "lat": "1.0"}, language_provider=lambda: "en-gb")
    keys = [key for key, _ in request.params]

    assert keys == sorted(keys)
    parts = urlsplit(request.url)
    assert f"{parts.scheme}://{parts.netloc}{parts.path}" == BASE_URL
    assert parse_qsl(parts.query) == list(request.params)


def test_cache_key_ignores_insertion_order() -> None:
    first = _build({"lat": "1.0", "lon": "2.0", "zoom": "18"})
    second = _build({"zoom": "18", "lon": "2.0", "lat": "1.0"})

    assert first.cache_key() == second.cache_key()
    assert len(first.cache_key()) == 64


def test_cache_key_changes_with_any_value() -> None:
    base = _build({"lat": "1.0", "lon": "2.0"})

    assert base.cache_key() != _build({"lat": "1.0", "lon": "2.5"}).cache_key()
    assert base.cache_key() != _build({"lat": "1.0", "lon": "2.0"}, language_provider=lambda: "cs").cache_key()


def test_reverse_params_formatting() -> None:
    assert reverse_params(51.23707, -0.589669) == {"lat": "51.23707", "lon": "-0.589669"}
    assert reverse_params(10, "20.5") == {"lat": "10.0", "lon": "20.5"}
