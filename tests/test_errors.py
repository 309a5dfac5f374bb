from __future__ import annotations

import json

import httplib2
import pytest
from google.api_core import exceptions as core_exceptions
from googleapiclient.errors import HttpError

from director_google.compute import gateway as compute_gateway
from director_google.errors import (
    AccessDenied,
    ApiCallError,
    ResourceConflict,
    ResourceNotFound,
    TransientApiError,
    from_status,
)
from director_google.sql import gateway as sql_gateway

pytestmark = [pytest.mark.xdist_group("unit")]


class TestFromStatus:
    @pytest.mark.parametrize(
        ("code", "cls"),
        [
            (404, ResourceNotFound),
            (403, AccessDenied),
            (409, ResourceConflict),
            (500, TransientApiError),
            (503, TransientApiError),
            (429, TransientApiError),
            (None, TransientApiError),
        ],
    )
    def test_classification(self, code, cls):
        error = from_status(code, "message")
        assert type(error) is cls
        assert error.status_code == code
        assert error.message == "message"

    def test_other_client_errors_are_plain(self):
        assert type(from_status(400, "bad request")) is ApiCallError


class TestComputeApiErrors:
    def test_not_found(self):
        with pytest.raises(ResourceNotFound, match="zone gone"):
            with compute_gateway.api_errors():
                raise core_exceptions.NotFound("zone gone")

    def test_conflict(self):
        with pytest.raises(ResourceConflict):
            with compute_gateway.api_errors():
                raise core_exceptions.Conflict("already exists")

    def test_server_error(self):
        with pytest.raises(TransientApiError):
            with compute_gateway.api_errors():
                raise core_exceptions.ServiceUnavailable("try later")

    def test_transport_error(self):
        with pytest.raises(TransientApiError):
            with compute_gateway.api_errors():
                raise ConnectionResetError("reset by peer")

    def test_retry_error_is_transient(self):
        with pytest.raises(TransientApiError, match="deadline"):
            with compute_gateway.api_errors():
                raise core_exceptions.RetryError("deadline exceeded", ConnectionResetError())


def _http_error(status: int, message: str) -> HttpError:
    content = json.dumps({"error": {"code": status, "message": message}}).encode()
    return HttpError(httplib2.Response({"status": status}), content)


class TestSqlApiErrors:
    def test_message_is_taken_from_payload(self):
        with pytest.raises(ResourceNotFound) as exc:
            with sql_gateway.api_errors():
                raise _http_error(404, "The Cloud SQL instance does not exist.")
        assert exc.value.message == "The Cloud SQL instance does not exist."

    def test_forbidden(self):
        with pytest.raises(AccessDenied):
            with sql_gateway.api_errors():
                raise _http_error(403, "not authorized")

    def test_unparseable_payload(self):
        error = HttpError(httplib2.Response({"status": 500}), b"<html>oops</html>")
        with pytest.raises(TransientApiError):
            with sql_gateway.api_errors():
                raise error

    def test_unreachable_host_is_transient(self):
        with pytest.raises(TransientApiError, match="sqladmin"):
            with sql_gateway.api_errors():
                raise httplib2.ServerNotFoundError("Unable to find the server at sqladmin.googleapis.com")

    def test_httplib2_errors_are_transient(self):
        with pytest.raises(TransientApiError):
            with sql_gateway.api_errors():
                raise httplib2.HttpLib2Error("connection dropped")
