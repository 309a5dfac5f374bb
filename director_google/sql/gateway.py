"""Thin synchronous wrapper over the Cloud SQL Admin API (v1beta4).

The discovery-based client returns plain dicts; errors surface as
``googleapiclient.errors.HttpError`` and are translated into
``director_google.errors``.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import httplib2
from google.auth import exceptions as auth_exceptions
from googleapiclient.errors import HttpError

from director_google.errors import TransientApiError, from_status
from director_google.operations import OperationSnapshot, PendingOperation

SQLADMIN_API = "sqladmin"
SQLADMIN_VERSION = "v1beta4"


def _http_error_message(e: HttpError) -> str:
    try:
        payload = json.loads(e.content.decode("utf-8"))
        return payload["error"]["message"]
    except (ValueError, KeyError, TypeError, AttributeError):
        return str(e)


@contextmanager
def api_errors() -> Iterator[None]:
    try:
        yield
    except HttpError as e:
        raise from_status(e.resp.status, _http_error_message(e)) from e
    except (auth_exceptions.TransportError, httplib2.HttpLib2Error, OSError) as e:
        raise TransientApiError(str(e)) from e


def _pending(operation: dict[str, Any], target_id: str) -> PendingOperation:
    return PendingOperation(name=operation["name"], target_id=operation.get("targetId", target_id))


class SQLAdminGateway:
    """Project-scoped Cloud SQL Admin calls used by the plugin."""

    def __init__(self, project: str, service: Any) -> None:
        self.project = project
        self._service = service

    @classmethod
    def create(cls, project: str, credentials: Any) -> SQLAdminGateway:
        from googleapiclient import discovery

        service = discovery.build(
            SQLADMIN_API,
            SQLADMIN_VERSION,
            credentials=credentials,
            cache_discovery=False,
        )
        return cls(project, service)

    def insert_instance(self, body: dict[str, Any]) -> PendingOperation:
        with api_errors():
            operation = self._service.instances().insert(project=self.project, body=body).execute()
        return _pending(operation, body["name"])

    def delete_instance(self, name: str) -> PendingOperation:
        with api_errors():
            operation = self._service.instances().delete(project=self.project, instance=name).execute()
        return _pending(operation, name)

    def get_instance(self, name: str) -> dict[str, Any]:
        with api_errors():
            return self._service.instances().get(project=self.project, instance=name).execute()

    def insert_user(self, instance: str, username: str, password: str) -> PendingOperation:
        body = {"name": username, "password": password}
        with api_errors():
            operation = self._service.users().insert(
                project=self.project, instance=instance, body=body,
            ).execute()
        return _pending(operation, instance)

    def get_operation(self, pending: PendingOperation) -> OperationSnapshot:
        with api_errors():
            operation = self._service.operations().get(
                project=self.project, operation=pending.name,
            ).execute()
        errors = tuple(
            e.get("message", e.get("code", "")) for e in operation.get("error", {}).get("errors", [])
        )
        return OperationSnapshot(name=operation["name"], status=operation["status"], errors=errors)

    def list_tiers(self) -> list[dict[str, Any]]:
        with api_errors():
            response = self._service.tiers().list(project=self.project).execute()
        return response.get("items", [])
