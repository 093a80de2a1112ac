"""
In-memory store backend used in demo/offline mode.

Keeps one list of plain dict records per table. Records mirror the JSON the
HTTP API returns so the store behaves the same against either backend.
"""
from __future__ import annotations

import copy
import json
import logging
import os
import uuid
from typing import Any, Dict, List, Optional

from labflow.db.models.base import now_utc
from labflow.services.dependency_graph import DependencyGraphError, edge_pair, execution_order, validate_dependencies
from labflow.services.progress import WorkflowStartError, first_position
from labflow.store.errors import RecordNotFound, StoreError
from labflow.utils.vocab import RUN_COMPLETED, RUN_IN_PROGRESS, WORKFLOW_PUBLISHED

logger = logging.getLogger(__name__)

TABLES = ("projects", "workflows", "assays", "steps", "user_workflows")


def _timestamp() -> str:
    return now_utc().isoformat()


class MemoryBackend:
    def __init__(self, seed: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self.tables: Dict[str, List[Dict[str, Any]]] = {name: [] for name in TABLES}
        for name, records in (seed or {}).items():
            if name not in self.tables:
                raise StoreError(f"Unknown table in seed data: {name}")
            self.tables[name] = [copy.deepcopy(r) for r in records]

    @classmethod
    def from_fixture(cls, path: str) -> "MemoryBackend":
        """Load seed tables from a JSON file shaped ``{"workflows": [...], ...}``."""
        with open(path, encoding="utf-8") as fh:
            seed = json.load(fh)
        logger.info("demo_fixture_loaded: path=%s tables=%s", path, sorted(seed))
        return cls(seed)

    @classmethod
    def from_env(cls) -> "MemoryBackend":
        path = os.getenv("LABFLOW_DEMO_FIXTURE")
        return cls.from_fixture(path) if path else cls()

    def _find(self, table: str, record_id) -> Optional[Dict[str, Any]]:
        key = str(record_id)
        for record in self.tables[table]:
            if str(record.get("id")) == key:
                return record
        return None

    def list(self, table: str, **filters) -> List[Dict[str, Any]]:
        filters = {k: v for k, v in filters.items() if v is not None}
        if table == "assays" and "workflow_id" in filters:
            workflow = self._find("workflows", filters.pop("workflow_id"))
            order = [str(a) for a in (workflow or {}).get("assay_ids", [])]
            by_id = {str(a["id"]): a for a in self.tables["assays"]}
            rows = [by_id[a] for a in order if a in by_id]
        else:
            rows = list(self.tables[table])
        for key, value in filters.items():
            rows = [r for r in rows if str(r.get(key)) == str(value)]
        if table == "steps":
            rows.sort(key=lambda r: r.get("order_index", 0))
        return copy.deepcopy(rows)

    def get(self, table: str, record_id) -> Optional[Dict[str, Any]]:
        record = self._find(table, record_id)
        return copy.deepcopy(record) if record else None

    @staticmethod
    def _check_workflow(record: Dict[str, Any]) -> None:
        try:
            validate_dependencies(record.get("assay_ids") or [], record.get("dependencies") or [])
        except DependencyGraphError as exc:
            raise StoreError(str(exc), status_code=422) from exc
        if record.get("status") == WORKFLOW_PUBLISHED and not record.get("assay_ids"):
            raise StoreError("Cannot publish a workflow without assays", status_code=409)

    @staticmethod
    def _check_run_transition(record: Dict[str, Any], changes: Dict[str, Any]) -> None:
        status = changes.get("status", record.get("status"))
        if status == record.get("status"):
            return
        if record.get("status") != RUN_IN_PROGRESS:
            raise StoreError(f"Run is {record.get('status')}", status_code=409)
        changes["completed_at"] = _timestamp() if status == RUN_COMPLETED else None

    def create(self, table: str, data: Dict[str, Any]) -> Dict[str, Any]:
        stamp = _timestamp()
        record = dict(data)
        record.update(id=str(uuid.uuid4()), created_at=stamp, updated_at=stamp)
        if table == "workflows":
            self._check_workflow(record)
        self.tables[table].append(record)
        return copy.deepcopy(record)

    def update(self, table: str, record_id, data: Dict[str, Any]) -> Dict[str, Any]:
        record = self._find(table, record_id)
        if record is None:
            raise RecordNotFound(table, record_id)
        changes = {k: v for k, v in data.items() if k not in ("id", "created_at")}
        if table == "workflows":
            self._check_workflow(dict(record, **changes))
        elif table == "user_workflows":
            self._check_run_transition(record, changes)
        record.update(changes, updated_at=_timestamp())
        return copy.deepcopy(record)

    def delete(self, table: str, record_id) -> None:
        record = self._find(table, record_id)
        if record is None:
            raise RecordNotFound(table, record_id)
        if table == "assays":
            self._check_assay_removable(str(record["id"]))
        self.tables[table].remove(record)
        if table == "assays":
            self._detach_assay(str(record["id"]))
        elif table == "workflows":
            self.tables["user_workflows"] = [
                r for r in self.tables["user_workflows"] if str(r.get("workflow_id")) != str(record["id"])
            ]

    def _check_assay_removable(self, assay_id: str) -> None:
        stranded = sorted(
            str(w.get("title", w["id"]))
            for w in self.tables["workflows"]
            if w.get("status") == WORKFLOW_PUBLISHED and [str(a) for a in w.get("assay_ids", [])] == [assay_id]
        )
        if stranded:
            raise StoreError(
                f"Assay is the only one in published workflows: {', '.join(stranded)}", status_code=409
            )

    def _detach_assay(self, assay_id: str) -> None:
        """Drop a deleted assay from workflow graphs, its steps, and run positions."""
        for workflow in self.tables["workflows"]:
            if assay_id not in [str(a) for a in workflow.get("assay_ids", [])]:
                continue
            workflow["assay_ids"] = [a for a in workflow["assay_ids"] if str(a) != assay_id]
            workflow["dependencies"] = [
                e for e in workflow.get("dependencies", [])
                if assay_id not in {str(node) for node in edge_pair(e)}
            ]
        step_ids = {str(s["id"]) for s in self.tables["steps"] if str(s.get("assay_id")) == assay_id}
        self.tables["steps"] = [s for s in self.tables["steps"] if str(s["id"]) not in step_ids]
        for run in self.tables["user_workflows"]:
            if str(run.get("current_assay_id")) == assay_id:
                run.update(current_assay_id=None, current_step_id=None)
            elif str(run.get("current_step_id")) in step_ids:
                run["current_step_id"] = None

    def start_workflow(self, workflow_id, parameters: Dict[str, Any], project_id=None) -> Dict[str, Any]:
        workflow = self._find("workflows", workflow_id)
        if workflow is None:
            raise StoreError("Workflow not found", status_code=404)
        try:
            order = execution_order(workflow.get("assay_ids", []), workflow.get("dependencies", []))
        except DependencyGraphError as exc:
            raise StoreError(str(exc), status_code=422) from exc
        steps_by_assay = {
            assay_id: [uuid.UUID(str(s["id"])) for s in self.list("steps", assay_id=assay_id)]
            for assay_id in order
        }
        try:
            assay_id, step_id = first_position(order, steps_by_assay)
        except WorkflowStartError as exc:
            raise StoreError(str(exc), status_code=422) from exc
        return self.create(
            "user_workflows",
            {
                "workflow_id": str(workflow["id"]),
                "project_id": str(project_id) if project_id else None,
                "parameters": dict(parameters or {}),
                "current_assay_id": str(assay_id),
                "current_step_id": str(step_id),
                "status": RUN_IN_PROGRESS,
                "started_at": _timestamp(),
                "completed_at": None,
                "notes": None,
            },
        )

    def complete_user_workflow(self, run_id) -> Dict[str, Any]:
        record = self._find("user_workflows", run_id)
        if record is not None and record.get("status") != RUN_IN_PROGRESS:
            raise StoreError(f"Run is {record.get('status')}", status_code=409)
        return self.update("user_workflows", run_id, {"status": RUN_COMPLETED})
