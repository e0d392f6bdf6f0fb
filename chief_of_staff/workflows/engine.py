"""
Workflow engine.

On each trigger: load definitions, keep the active ones declaring that
trigger, evaluate their conditions against the event context and run the
actions of every workflow that matches, in order. Nothing raised inside a
workflow escapes; failures show up in the returned reports.

Delayed actions follow `delayed_action_mode`:
- "advisory": run now, log the delay, report it on the result
- "queue": store in Scheduled_Actions and report as scheduled
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from config import settings
from ..models.workflow import ActionResult, ActionSpec, WorkflowDefinition, WorkflowRunReport
from .actions import ActionExecutor
from .conditions import conditions_match
from .definitions import parse_definition
from .exceptions import WorkflowError
from .provider import WorkflowProvider
from .queue import DelayedActionQueue

logger = logging.getLogger(__name__)

DELAY_MODES = ("advisory", "queue")


class WorkflowEngine:
    """Evaluates workflows for trigger events."""

    def __init__(
        self,
        provider: WorkflowProvider,
        executor: ActionExecutor,
        queue: Optional[DelayedActionQueue] = None,
        delayed_action_mode: Optional[str] = None,
    ):
        self.provider = provider
        self.executor = executor
        self.queue = queue

        mode = (delayed_action_mode or settings.delayed_action_mode).strip().lower()
        if mode not in DELAY_MODES:
            raise WorkflowError(f"Unknown delayed action mode: {mode}")
        if mode == "queue" and queue is None:
            raise WorkflowError("Queue mode needs a DelayedActionQueue")
        self.delayed_action_mode = mode

    async def evaluate_and_run(self, trigger: str, context: Mapping[str, Any]) -> List[WorkflowRunReport]:
        """
        Run every active workflow for `trigger` whose conditions hold.

        Returns one report per workflow that ran. Workflows whose conditions
        fail are left out; a provider failure returns [].
        """
        try:
            definitions = await self.provider.load()
        except Exception as e:
            logger.error(f"Error loading workflows for trigger {trigger}: {e}", exc_info=True)
            return []

        reports = []
        for definition in definitions:
            if not definition.active or definition.trigger != trigger:
                continue
            if not conditions_match(definition.conditions, context):
                continue

            logger.info(f"Running workflow {definition.workflow_id} for trigger {trigger}")
            results = []
            for spec in definition.actions:
                results.append(await self._run(spec, context, definition.workflow_id))

            reports.append(WorkflowRunReport(
                workflow_id=definition.workflow_id,
                workflow_name=definition.name,
                executed=True,
                actions=results,
            ))

        return reports

    async def _run(self, spec: ActionSpec, context: Mapping[str, Any], workflow_id: str) -> ActionResult:
        if spec.delay_hours <= 0 or not self.executor.supports(spec):
            return await self.executor.execute(spec, context, workflow_id)

        if self.delayed_action_mode == "queue":
            try:
                due_at = await self.queue.schedule(workflow_id, spec, context)
            except Exception as e:
                logger.error(f"Workflow {workflow_id}: could not schedule {spec.kind}: {e}", exc_info=True)
                return ActionResult(type=spec.kind, executed=False, error=str(e), delay_hours=spec.delay_hours)
            return ActionResult(
                type=spec.kind,
                executed=False,
                scheduled=True,
                scheduled_for=due_at,
                delay_hours=spec.delay_hours,
            )

        logger.info(
            f"Workflow {workflow_id}: Action {spec.kind} declares a {spec.delay_hours} hour delay, running now"
        )
        result = await self.executor.execute(spec, context, workflow_id)
        result.delay_hours = spec.delay_hours
        return result

    async def run_action(self, spec: ActionSpec, context: Mapping[str, Any], workflow_id: str) -> ActionResult:
        """Run a single action immediately, ignoring its delay."""
        return await self.executor.execute(spec, context, workflow_id)

    async def run_due_actions(self) -> int:
        """Run queued actions that are due. No-op outside queue mode."""
        if self.delayed_action_mode != "queue":
            return 0
        return await self.queue.run_due(self.run_action)

    def dry_run(
        self,
        definition: Union[WorkflowDefinition, Mapping[str, Any]],
        sample_context: Mapping[str, Any],
    ) -> Dict[str, Any]:
        """
        Check a workflow against a sample context without running anything.

        Accepts a parsed definition or a raw Workflows row.
        """
        workflow_id = ""
        try:
            if not isinstance(definition, WorkflowDefinition):
                workflow_id = str(definition.get("Workflow_ID") or definition.get("Name") or "")
                definition = parse_definition(definition)
            workflow_id = definition.workflow_id

            met = conditions_match(definition.conditions, sample_context)
            actions = [spec.to_dict() for spec in definition.actions] if met else []
            return {
                "workflow_id": workflow_id,
                "conditions_met": met,
                "actions": actions,
                "would_execute": met and bool(definition.actions),
            }
        except Exception as e:
            return {
                "workflow_id": workflow_id,
                "error": str(e),
                "would_execute": False,
            }
