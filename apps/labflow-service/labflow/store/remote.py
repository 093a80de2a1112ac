"""
Remote store backend talking to the labflow REST API with ``requests``.
"""
from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional

import requests

from labflow.services.dependency_graph import DependencyGraphError, edge_pair
from labflow.store.errors import RecordNotFound, StoreError
from labflow.utils.vocab import WORKFLOW_PUBLISHED

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:8000"
DEFAULT_TIMEOUT = 10

_COLLECTIONS = {
    "projects": "/projects/",
    "workflows": "/workflows/",
    "assays": "/assays/",
    "steps": "/steps/",
    "user_workflows": "/user-workflows/",
}

# Workflow fields the API only accepts through the graph endpoint
_GRAPH_KEYS = ("assay_ids", "dependencies")


class HttpBackend:
    """Maps store tables onto API collections.

    ``session`` may be any object with a requests-style ``request`` method,
    which lets tests pass a FastAPI ``TestClient``.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        session=None,
        headers: Optional[Dict[str, str]] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.base_url = (base_url or os.getenv("LABFLOW_API_URL") or DEFAULT_API_URL).rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.headers = dict(headers or {})
        self.timeout = timeout

    def _request(self, method: str, path: str, *, params=None, json=None):
        url = f"{self.base_url}{path}"
        kwargs: Dict[str, Any] = {"headers": self.headers}
        if params:
            kwargs["params"] = {k: str(v) for k, v in params.items() if v is not None}
        if json is not None:
            kwargs["json"] = json
        if isinstance(self.session, requests.Session):
            kwargs["timeout"] = self.timeout
        try:
            response = self.session.request(method, url, **kwargs)
        except requests.RequestException as exc:
            logger.error("store_request_failed: %s %s error=%s", method, url, exc)
            raise StoreError(f"Could not reach {self.base_url}: {exc}") from exc
        if response.status_code >= 400:
            raise StoreError(self._error_message(response), status_code=response.status_code)
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    @staticmethod
    def _error_message(response) -> str:
        try:
            body = response.json()
        except ValueError:
            body = None
        detail = body.get("detail") if isinstance(body, dict) else None
        if isinstance(detail, list):
            # FastAPI validation errors
            detail = "; ".join(str(item.get("msg", item)) for item in detail)
        return str(detail or f"Request failed with status {response.status_code}")

    @staticmethod
    def _item_path(table: str, record_id) -> str:
        return f"{_COLLECTIONS[table]}{record_id}"

    def list(self, table: str, **filters) -> List[Dict[str, Any]]:
        if table == "steps":
            assay_id = filters.pop("assay_id")
            return self._request("GET", f"/assays/{assay_id}/steps/")
        return self._request("GET", _COLLECTIONS[table], params=filters)

    def get(self, table: str, record_id) -> Optional[Dict[str, Any]]:
        try:
            return self._request("GET", self._item_path(table, record_id))
        except StoreError as exc:
            if exc.status_code == 404:
                return None
            raise

    def create(self, table: str, data: Dict[str, Any]) -> Dict[str, Any]:
        if table == "steps":
            payload = dict(data)
            assay_id = payload.pop("assay_id")
            return self._request("POST", f"/assays/{assay_id}/steps/", json=payload)
        if table == "user_workflows":
            raise StoreError("User workflows are created with start_workflow")
        return self._request("POST", _COLLECTIONS[table], json=data)

    def update(self, table: str, record_id, data: Dict[str, Any]) -> Dict[str, Any]:
        method = "PATCH" if table == "user_workflows" else "PUT"
        try:
            if table == "workflows" and any(key in data for key in _GRAPH_KEYS):
                return self._update_workflow_with_graph(record_id, data)
            return self._request(method, self._item_path(table, record_id), json=data)
        except StoreError as exc:
            if exc.status_code == 404:
                raise RecordNotFound(table, record_id) from exc
            raise

    def delete(self, table: str, record_id) -> None:
        try:
            self._request("DELETE", self._item_path(table, record_id))
        except StoreError as exc:
            if exc.status_code == 404:
                raise RecordNotFound(table, record_id) from exc
            raise

    def start_workflow(self, workflow_id, parameters: Dict[str, Any], project_id=None) -> Dict[str, Any]:
        payload = {
            "workflow_id": str(workflow_id),
            "parameters": dict(parameters or {}),
            "project_id": str(project_id) if project_id else None,
        }
        return self._request("POST", _COLLECTIONS["user_workflows"], json=payload)

    def complete_user_workflow(self, run_id) -> Dict[str, Any]:
        return self._request("POST", f"{self._item_path('user_workflows', run_id)}/complete")

    def _update_workflow_with_graph(self, workflow_id, data: Dict[str, Any]) -> Dict[str, Any]:
        """Send graph keys to the graph endpoint and the rest as a plain update."""
        path = self._item_path("workflows", workflow_id)
        current = self._request("GET", f"{path}/graph")
        try:
            edges = [edge_pair(e) for e in data.get("dependencies", current["dependencies"])]
        except DependencyGraphError as exc:
            raise StoreError(str(exc), status_code=422) from exc
        graph = {
            "assay_ids": [str(a) for a in data.get("assay_ids", current["assay_ids"])],
            "dependencies": [{"from_assay_id": str(s), "to_assay_id": str(t)} for s, t in edges],
        }
        fields = {k: v for k, v in data.items() if k not in _GRAPH_KEYS}
        # Publishing needs the new assays in place first
        publishing = fields.get("status") == WORKFLOW_PUBLISHED
        if fields and not publishing:
            self._request("PUT", path, json=fields)
        self._request("PUT", f"{path}/graph", json=graph)
        if fields and publishing:
            self._request("PUT", path, json=fields)
        return self._request("GET", path)
