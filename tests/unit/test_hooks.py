from __future__ import annotations

import httpx
import pytest

from apiflow import (
    ArgumentValidationError,
    BaseUrlFormatter,
    CancellationError,
    CancellationToken,
    ErrorMappingValidator,
    HttpStatusError,
    IdentityUrlFormatter,
    QueryParamsUrlFormatter,
    ResponseValidator,
    SuccessStatusValidator,
    UrlFormatter,
)
from tests.helpers import CountingStream

TEST_URL = "https://api.example.com/items/42"


def create_response(status_code: int, content: bytes = b"") -> httpx.Response:
    return httpx.Response(
        status_code, stream=CountingStream(content), request=httpx.Request("GET", TEST_URL)
    )


##########################################
#     Tests for IdentityUrlFormatter     #
##########################################


def test_identity_url_formatter_is_a_url_formatter() -> None:
    assert isinstance(IdentityUrlFormatter(), UrlFormatter)


@pytest.mark.asyncio
@pytest.mark.parametrize("url", ["/items/42", TEST_URL, "items?page=2"])
async def test_identity_url_formatter(url: str) -> None:
    """Test that the default formatter returns the URL unchanged."""
    assert await IdentityUrlFormatter().format_url(url) == url


######################################
#     Tests for BaseUrlFormatter     #
######################################


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("base_url", "url", "expected"),
    [
        ("https://api.example.com/v2", "/items/42", "https://api.example.com/v2/items/42"),
        ("https://api.example.com/v2/", "items/42", "https://api.example.com/v2/items/42"),
        ("https://api.example.com/v2/", "/items?page=2", "https://api.example.com/v2/items?page=2"),
        ("https://api.example.com/v2", "https://other.example.com/x", "https://other.example.com/x"),
    ],
)
async def test_base_url_formatter(base_url: str, url: str, expected: str) -> None:
    assert await BaseUrlFormatter(base_url).format_url(url) == expected


def test_base_url_formatter_rejects_empty_base_url() -> None:
    with pytest.raises(ArgumentValidationError, match=r"base_url must be a non-empty string"):
        BaseUrlFormatter("")


def test_base_url_formatter_repr() -> None:
    assert (
        repr(BaseUrlFormatter("https://api.example.com/"))
        == "BaseUrlFormatter(base_url='https://api.example.com')"
    )


#############################################
#     Tests for QueryParamsUrlFormatter     #
#############################################


@pytest.mark.asyncio
async def test_query_params_url_formatter_appends_params() -> None:
    formatter = QueryParamsUrlFormatter({"api_key": "secret"})
    assert await formatter.format_url(TEST_URL) == f"{TEST_URL}?api_key=secret"


@pytest.mark.asyncio
async def test_query_params_url_formatter_keeps_existing_params() -> None:
    formatter = QueryParamsUrlFormatter({"api_key": "secret"})
    assert (
        await formatter.format_url(f"{TEST_URL}?page=2") == f"{TEST_URL}?page=2&api_key=secret"
    )


@pytest.mark.asyncio
async def test_query_params_url_formatter_relative_url() -> None:
    formatter = QueryParamsUrlFormatter({"api_key": "secret"})
    assert await formatter.format_url("/items/42") == "/items/42?api_key=secret"


def test_query_params_url_formatter_repr_hides_values() -> None:
    """Test that the representation does not leak parameter values."""
    assert (
        repr(QueryParamsUrlFormatter({"api_key": "secret"}))
        == "QueryParamsUrlFormatter(params=['api_key'])"
    )


############################################
#     Tests for SuccessStatusValidator     #
############################################


def test_success_status_validator_is_a_response_validator() -> None:
    assert isinstance(SuccessStatusValidator(), ResponseValidator)


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code", [200, 201, 204, 299])
async def test_success_status_validator_accepts_success(status_code: int) -> None:
    """Test that a success response is returned without reading the
    body."""
    stream = CountingStream(b"payload")
    response = httpx.Response(
        status_code, stream=stream, request=httpx.Request("GET", TEST_URL)
    )
    assert await SuccessStatusValidator().validate(response) is response
    assert not response.is_stream_consumed
    assert stream.close_count == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code", [100, 301, 400, 404, 500])
async def test_success_status_validator_rejects_non_success(status_code: int) -> None:
    response = create_response(status_code, b"error details")
    with pytest.raises(HttpStatusError) as exc_info:
        await SuccessStatusValidator().validate(response)

    error = exc_info.value
    assert error.status_code == status_code
    assert error.method == "GET"
    assert error.url == TEST_URL
    assert error.body == "error details"
    assert error.response is response
    assert str(error) == f"GET request to {TEST_URL} failed with status {status_code}"


@pytest.mark.asyncio
async def test_success_status_validator_cancelled_token() -> None:
    """Test that reading the error body honors the cancellation
    token."""
    token = CancellationToken()
    token.cancel()
    with pytest.raises(CancellationError):
        await SuccessStatusValidator().validate(create_response(500, b"boom"), token)


###########################################
#     Tests for ErrorMappingValidator     #
###########################################


class ItemNotFoundError(Exception):
    pass


@pytest.mark.asyncio
async def test_error_mapping_validator_maps_status() -> None:
    validator = ErrorMappingValidator({404: lambda err: ItemNotFoundError(err.body)})
    with pytest.raises(ItemNotFoundError, match=r"no such item") as exc_info:
        await validator.validate(create_response(404, b"no such item"))
    assert isinstance(exc_info.value.__cause__, HttpStatusError)
    assert exc_info.value.__cause__.status_code == 404


@pytest.mark.asyncio
async def test_error_mapping_validator_falls_back_to_status_error() -> None:
    validator = ErrorMappingValidator({404: lambda err: ItemNotFoundError(err.body)})
    with pytest.raises(HttpStatusError) as exc_info:
        await validator.validate(create_response(500))
    assert exc_info.value.status_code == 500


@pytest.mark.asyncio
async def test_error_mapping_validator_accepts_success() -> None:
    validator = ErrorMappingValidator({404: lambda err: ItemNotFoundError(err.body)})
    response = create_response(200)
    assert await validator.validate(response) is response


@pytest.mark.asyncio
async def test_error_mapping_validator_custom_fallback() -> None:
    """Test that unmapped statuses are delegated to the fallback
    validator."""

    class AcceptAllValidator:
        async def validate(
            self, response: httpx.Response, cancellation_token: CancellationToken | None = None
        ) -> httpx.Response:
            return response

    validator = ErrorMappingValidator({404: ItemNotFoundError}, fallback=AcceptAllValidator())
    response = create_response(500)
    assert await validator.validate(response) is response


def test_error_mapping_validator_repr() -> None:
    validator = ErrorMappingValidator({500: ItemNotFoundError, 404: ItemNotFoundError})
    assert repr(validator).startswith("ErrorMappingValidator(status_codes=[404, 500], fallback=")
