"""
Progress service: starts, advances and closes user workflow runs.
"""
from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from labflow.db import models, schemas
from labflow.db.repositories import assays as assay_repo
from labflow.db.repositories import user_workflows as run_repo
from labflow.db.repositories import workflows as workflow_repo
from labflow.services.dependency_graph import execution_order
from labflow.services.progress import WorkflowStartError, first_position, next_position
from labflow.utils.formulas import evaluate_formula, formula_placeholders
from labflow.utils.vocab import RUN_ABANDONED, RUN_COMPLETED, RUN_IN_PROGRESS

logger = logging.getLogger(__name__)


class RunStateError(ValueError):
    """Raised when a run is not in a state that allows the requested transition."""


class ProgressService:
    """Service class for user workflow runs."""

    def __init__(self, db: Session):
        self.db = db

    def _assay_order(self, workflow: models.Workflow) -> List[uuid.UUID]:
        edges = workflow_repo.get_dependencies(self.db, workflow.id)
        return execution_order(workflow.assay_ids, edges)

    def _layout(self, workflow: models.Workflow):
        order = self._assay_order(workflow)
        return order, assay_repo.get_step_ids_by_assay(self.db, order)

    def start(self, user_id: uuid.UUID, payload: schemas.UserWorkflowStart) -> models.UserWorkflow:
        workflow = workflow_repo.get_workflow(self.db, payload.workflow_id)
        if not workflow:
            raise WorkflowStartError("Workflow not found")
        order, steps_by_assay = self._layout(workflow)
        assay_id, step_id = first_position(order, steps_by_assay)
        run = run_repo.create_user_workflow(
            self.db,
            user_id=user_id,
            workflow_id=workflow.id,
            project_id=payload.project_id,
            parameters=dict(payload.parameters),
            notes=payload.notes,
            current_assay_id=assay_id,
            current_step_id=step_id,
            status=RUN_IN_PROGRESS,
        )
        logger.info("run_started: run=%s workflow=%s user=%s", run.id, workflow.id, user_id)
        return run

    def advance(self, run: models.UserWorkflow) -> models.UserWorkflow:
        """Move the run to its next step, completing it after the last one."""
        self._require_in_progress(run)
        workflow = workflow_repo.get_workflow(self.db, run.workflow_id)
        order, steps_by_assay = self._layout(workflow)
        position = next_position(order, steps_by_assay, run.current_assay_id, run.current_step_id)
        if position is None:
            return self.complete(run)
        assay_id, step_id = position
        return run_repo.update_user_workflow(
            self.db, run.id, {"current_assay_id": assay_id, "current_step_id": step_id}
        )

    @staticmethod
    def _require_in_progress(run: models.UserWorkflow):
        if run.status != RUN_IN_PROGRESS:
            raise RunStateError(f"Run is {run.status}")

    def complete(self, run: models.UserWorkflow) -> models.UserWorkflow:
        self._require_in_progress(run)
        logger.info("run_completed: run=%s", run.id)
        return run_repo.update_user_workflow(
            self.db, run.id, {"status": RUN_COMPLETED, "completed_at": models.now_utc()}
        )

    def abandon(self, run: models.UserWorkflow) -> models.UserWorkflow:
        self._require_in_progress(run)
        logger.info("run_abandoned: run=%s", run.id)
        return run_repo.update_user_workflow(self.db, run.id, {"status": RUN_ABANDONED})

    def update(self, run: models.UserWorkflow, payload: schemas.UserWorkflowUpdate) -> models.UserWorkflow:
        """Apply a PATCH; a status change must leave the in-progress state."""
        data: Dict[str, Any] = payload.model_dump(exclude_unset=True)
        status = data.get("status", run.status)
        if status != run.status:
            self._require_in_progress(run)
            data["completed_at"] = models.now_utc() if status == RUN_COMPLETED else None
        return run_repo.update_user_workflow(self.db, run.id, data)

    @staticmethod
    def calculate(step: models.Step, parameters: Optional[Dict[str, Any]]) -> schemas.StepCalculation:
        """Evaluate a step's formula against run parameters.

        Missing parameters are reported and leave ``value`` unset; any other
        evaluation failure is logged and yields 0.
        """
        parameters = parameters or {}
        formula = step.calculation_formula
        dependencies = list(step.calculation_dependencies or formula_placeholders(formula or ""))
        if not formula:
            return schemas.StepCalculation(step_id=step.id, dependencies=dependencies)
        missing = [
            name
            for name in formula_placeholders(formula)
            if not isinstance(parameters.get(name), (int, float)) or isinstance(parameters.get(name), bool)
        ]
        value = None if missing else evaluate_formula(formula, parameters)
        return schemas.StepCalculation(
            step_id=step.id,
            formula=formula,
            dependencies=dependencies,
            missing_parameters=missing,
            value=value,
        )
