from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, List, Literal, Optional

from bson import ObjectId

from socialgraph.config.settings import CascadeConfig
from socialgraph.graph.cascade_planner import CascadePlan, CascadeStep
from socialgraph.graph.errors import ConflictError, NotFoundError, WriteRejectedError
from socialgraph.store.base import StoreContext, StoreError, UniqueViolation


@dataclass(frozen=True)
class FailedStep:
    step: CascadeStep
    error: str


@dataclass(frozen=True)
class CascadeResult:
    """
    Aggregate outcome of one plan.

    ``partial_failure`` means the primary write committed but at least
    one compensation did not; replaying the same plan is safe.
    """

    kind: str
    entity_id: ObjectId
    status: Literal["success", "partial_failure"]
    primary_result: Any = None
    applied: int = 0
    failed: List[FailedStep] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == "success"

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "status": self.status,
            "kind": self.kind,
            "entity_id": str(self.entity_id),
            "applied": self.applied,
            "failed_steps": [
                {
                    "collection": f.step.collection,
                    "operation": f.step.operation,
                    "description": f.step.describe(),
                    "error": f.error,
                }
                for f in self.failed
            ],
        }


class CascadeExecutor:
    """
    Runs cascade plans against a store.

    The primary write always runs first and alone. If it fails nothing
    else runs and the error reaches the caller. Compensations are then
    applied sequentially or as an awaited parallel batch; their
    failures are collected into the result, not raised.
    """

    def __init__(self, *, store: StoreContext, config: CascadeConfig) -> None:
        self.store = store
        self.config = config
        self.logger = logging.getLogger("socialgraph.cascade")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def execute(self, plan: CascadePlan) -> CascadeResult:
        t0 = time.perf_counter()

        if self._transactional():
            result = self._execute_in_transaction(plan)
        else:
            primary_result = self._run_primary(plan)
            failed = self._run_compensations(plan.compensations)
            result = self._result(plan, primary_result, failed)

        self.logger.info(
            "[cascade] %s %s status=%s steps=%d failed=%d in %.3fs",
            plan.kind,
            plan.entity_id,
            result.status,
            len(plan.compensations),
            len(result.failed),
            time.perf_counter() - t0,
        )
        return result

    def replay(self, plan: CascadePlan) -> CascadeResult:
        """
        Re-apply the compensations of a plan whose primary write
        already committed.
        """
        failed = self._run_compensations(plan.compensations)
        return self._result(plan, None, failed)

    # ------------------------------------------------------------------
    # Primary write
    # ------------------------------------------------------------------

    def _run_primary(self, plan: CascadePlan) -> Any:
        step = plan.primary
        try:
            outcome = self._apply(step, primary=True)
        except UniqueViolation as exc:
            raise ConflictError(
                f"{step.describe()} rejected: {exc}",
                entity=plan.kind,
                entity_id=plan.entity_id,
            ) from exc
        except StoreError as exc:
            raise WriteRejectedError(
                f"{step.describe()} failed: {exc}",
                entity=plan.kind,
                entity_id=plan.entity_id,
            ) from exc

        if plan.require_match and outcome is None:
            raise NotFoundError(
                f"{step.describe()}: no {plan.kind} document {plan.entity_id}",
                entity=plan.kind,
                entity_id=plan.entity_id,
            )
        return outcome

    # ------------------------------------------------------------------
    # Compensations
    # ------------------------------------------------------------------

    def _run_compensations(self, steps: List[CascadeStep]) -> List[FailedStep]:
        if not steps:
            return []
        if self.config.mode == "parallel" and len(steps) > 1:
            return self._run_parallel(steps)
        return self._run_sequential(steps)

    def _run_sequential(self, steps: List[CascadeStep]) -> List[FailedStep]:
        failed: List[FailedStep] = []
        for step in steps:
            error = self._try_apply(step)
            if error is not None:
                failed.append(FailedStep(step=step, error=error))
        return failed

    def _run_parallel(self, steps: List[CascadeStep]) -> List[FailedStep]:
        workers = max(1, min(self.config.max_workers, len(steps)))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            errors = list(pool.map(self._try_apply, steps))
        return [
            FailedStep(step=step, error=error)
            for step, error in zip(steps, errors)
            if error is not None
        ]

    def _try_apply(self, step: CascadeStep) -> Optional[str]:
        try:
            self._apply(step)
        except StoreError as exc:
            self.logger.warning(
                "[cascade] compensation failed: %s (%s.%s): %s",
                step.describe(),
                step.collection,
                step.operation,
                exc,
            )
            return str(exc)
        return None

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def _transactional(self) -> bool:
        return self.config.use_transactions and self.store.supports_transactions

    def _execute_in_transaction(self, plan: CascadePlan) -> CascadeResult:
        # Any failure aborts the whole plan, so nothing is partial here.
        def _body() -> Any:
            outcome = self._run_primary(plan)
            for step in plan.compensations:
                self._apply(step)
            return outcome

        try:
            primary_result = self.store.run_in_transaction(_body)
        except UniqueViolation as exc:
            raise ConflictError(
                f"transaction for {plan.primary.describe()} rejected: {exc}",
                entity=plan.kind,
                entity_id=plan.entity_id,
            ) from exc
        except StoreError as exc:
            raise WriteRejectedError(
                f"transaction for {plan.primary.describe()} aborted: {exc}",
                entity=plan.kind,
                entity_id=plan.entity_id,
            ) from exc
        return self._result(plan, primary_result, [])

    # ------------------------------------------------------------------
    # Step dispatch
    # ------------------------------------------------------------------

    def _apply(self, step: CascadeStep, *, primary: bool = False) -> Any:
        collection = self.store.collection(step.collection)

        if step.operation == "insert_one":
            return collection.insert_one(step.value)

        if step.operation == "delete_one":
            return collection.delete_one(step.filter)

        if step.operation == "delete_many":
            return collection.delete_many(step.filter)

        if step.operation in ("pull", "add_to_set"):
            operator = "$pull" if step.operation == "pull" else "$addToSet"
            update = {operator: {step.field: step.value}}
            if primary:
                return collection.find_one_and_update(
                    step.filter, update, return_document="after"
                )
            return collection.update_many(step.filter, update)

        raise ValueError(f"unknown step operation: {step.operation}")

    @staticmethod
    def _result(
        plan: CascadePlan, primary_result: Any, failed: List[FailedStep]
    ) -> CascadeResult:
        return CascadeResult(
            kind=plan.kind,
            entity_id=plan.entity_id,
            status="partial_failure" if failed else "success",
            primary_result=primary_result,
            applied=len(plan.compensations) - len(failed),
            failed=failed,
        )
