"""
Workflow state container.

Holds the last fetched projects, workflows, assays, steps and user workflows
together with ``loading`` and ``error`` flags. Every backend call flips
``loading`` on and off; failures land in ``error``. Fetches swallow the
failure after recording it, mutations record it and re-raise.
"""
from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Any, Callable, Dict, List, Optional

from labflow.store.errors import StoreError
from labflow.store.memory import MemoryBackend
from labflow.store.remote import HttpBackend

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


class WorkflowStore:
    def __init__(self, backend=None):
        self.backend = backend if backend is not None else MemoryBackend()
        self.projects: List[Record] = []
        self.workflows: List[Record] = []
        self.assays: List[Record] = []
        self.steps: List[Record] = []
        self.user_workflows: List[Record] = []
        self.loading = False
        self.error: Optional[str] = None

    @classmethod
    def from_env(cls, **http_kwargs) -> "WorkflowStore":
        """Remote store when LABFLOW_API_URL is set, demo store otherwise."""
        if os.getenv("LABFLOW_API_URL"):
            return cls(HttpBackend(**http_kwargs))
        return cls(MemoryBackend.from_env())

    @contextmanager
    def _loading(self):
        self.loading = True
        self.error = None
        try:
            yield
        except StoreError as exc:
            self.error = str(exc)
            logger.warning("store_call_failed: %s", exc)
            raise
        finally:
            self.loading = False

    def _fetch(self, table: str, **filters) -> List[Record]:
        try:
            with self._loading():
                rows = self.backend.list(table, **filters)
        except StoreError:
            return getattr(self, table)
        setattr(self, table, rows)
        return rows

    def _get(self, table: str, record_id) -> Optional[Record]:
        try:
            return self.backend.get(table, record_id)
        except StoreError as exc:
            self.error = str(exc)
            return None

    def _create(self, table: str, data: Record, call: Optional[Callable[[], Record]] = None) -> str:
        with self._loading():
            record = call() if call else self.backend.create(table, dict(data))
        getattr(self, table).append(record)
        return record["id"]

    def _replace(self, table: str, record: Record) -> Record:
        rows = getattr(self, table)
        for index, existing in enumerate(rows):
            if str(existing.get("id")) == str(record["id"]):
                rows[index] = record
                break
        return record

    def _update(self, table: str, record_id, data: Record) -> Record:
        with self._loading():
            record = self.backend.update(table, record_id, dict(data))
        return self._replace(table, record)

    def _delete(self, table: str, record_id) -> None:
        with self._loading():
            self.backend.delete(table, record_id)
        setattr(self, table, [r for r in getattr(self, table) if str(r.get("id")) != str(record_id)])

    # Projects
    def fetch_projects(self) -> List[Record]:
        return self._fetch("projects")

    def get_project_by_id(self, project_id) -> Optional[Record]:
        return self._get("projects", project_id)

    def create_project(self, data: Record) -> str:
        return self._create("projects", data)

    def update_project(self, project_id, data: Record) -> Record:
        return self._update("projects", project_id, data)

    def delete_project(self, project_id) -> None:
        self._delete("projects", project_id)

    # Workflows
    def fetch_workflows(self, project_id=None) -> List[Record]:
        return self._fetch("workflows", project_id=project_id)

    def get_workflow_by_id(self, workflow_id) -> Optional[Record]:
        return self._get("workflows", workflow_id)

    def create_workflow(self, data: Record) -> str:
        return self._create("workflows", data)

    def update_workflow(self, workflow_id, data: Record) -> Record:
        return self._update("workflows", workflow_id, data)

    def delete_workflow(self, workflow_id) -> None:
        self._delete("workflows", workflow_id)

    # Assays
    def fetch_assays(self, workflow_id=None) -> List[Record]:
        return self._fetch("assays", workflow_id=workflow_id)

    def get_assay_by_id(self, assay_id) -> Optional[Record]:
        return self._get("assays", assay_id)

    def create_assay(self, data: Record) -> str:
        return self._create("assays", data)

    def update_assay(self, assay_id, data: Record) -> Record:
        return self._update("assays", assay_id, data)

    def delete_assay(self, assay_id) -> None:
        self._delete("assays", assay_id)

    # Steps
    def fetch_steps(self, assay_id) -> List[Record]:
        return self._fetch("steps", assay_id=assay_id)

    def get_step_by_id(self, step_id) -> Optional[Record]:
        return self._get("steps", step_id)

    def create_step(self, data: Record) -> str:
        return self._create("steps", data)

    def update_step(self, step_id, data: Record) -> Record:
        return self._update("steps", step_id, data)

    def delete_step(self, step_id) -> None:
        self._delete("steps", step_id)

    # User workflows
    def fetch_user_workflows(self, project_id=None) -> List[Record]:
        return self._fetch("user_workflows", project_id=project_id)

    def get_user_workflow_by_id(self, run_id) -> Optional[Record]:
        return self._get("user_workflows", run_id)

    def start_workflow(self, workflow_id, parameters: Optional[Record] = None, project_id=None) -> str:
        """Create an in-progress run on the first step of the workflow's first assay."""
        return self._create(
            "user_workflows",
            {},
            call=lambda: self.backend.start_workflow(workflow_id, parameters or {}, project_id=project_id),
        )

    def update_user_workflow(self, run_id, data: Record) -> Record:
        return self._update("user_workflows", run_id, data)

    def complete_user_workflow(self, run_id) -> Record:
        with self._loading():
            record = self.backend.complete_user_workflow(run_id)
        return self._replace("user_workflows", record)
