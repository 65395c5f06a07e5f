"""HookManager — runs one ordered batch of hook actions for one phase.

INVARIANT: Hook failures are lifecycle notifications, never errors. The
manager captures every failure in that action's :class:`HookResult` and
never raises to its caller.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence

from dotsnapshot.domain.errors import HookValidationError
from dotsnapshot.domain.hooks import HookAction, HookContext, HookPhase, HookResult
from dotsnapshot.services.hook_actions import HookExecutor

logger = logging.getLogger(__name__)

# Script output longer than this is not echoed to the debug log.
_MAX_LOGGED_OUTPUT = 200


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


class HookManager:
    """Validates and executes hook batches sequentially, in input order."""

    def __init__(self, executor: HookExecutor | None = None) -> None:
        self._executor = executor or HookExecutor()

    def execute_hooks(
        self,
        actions: Sequence[HookAction],
        phase: HookPhase,
        context: HookContext,
    ) -> list[HookResult]:
        """Run every action in *actions*; one failure does not stop the rest.

        An empty batch returns immediately without logging anything.
        """
        if not actions:
            return []

        scope = f" for plugin '{context.plugin_name}'" if context.plugin_name else " (global)"
        total = len(actions)
        logger.info("Executing %s hooks%s (%d hooks)", phase, scope, total)

        results: list[HookResult] = []
        for index, action in enumerate(actions, start=1):
            description = action.describe()
            logger.info("  [%d/%d] Starting %s hook: %s", index, total, phase, description)

            started = time.perf_counter()
            result = self._run_one(action, context)
            result = result.model_copy(
                update={
                    "execution_time_ms": _elapsed_ms(started),
                    "action_description": description,
                }
            )

            if result.success:
                logger.info(
                    "  [%d/%d] %s hook completed: %s (%dms)",
                    index,
                    total,
                    phase,
                    description,
                    result.execution_time_ms,
                )
                output = (result.output or "").strip()
                if output and len(output) < _MAX_LOGGED_OUTPUT:
                    logger.debug("     Output: %s", output)
            else:
                logger.error(
                    "  [%d/%d] %s hook failed: %s (%dms)",
                    index,
                    total,
                    phase,
                    description,
                    result.execution_time_ms,
                )
                if result.error:
                    logger.error("     Error: %s", result.error)

            results.append(result)

        succeeded = sum(1 for r in results if r.success)
        total_ms = sum(r.execution_time_ms for r in results)
        if succeeded == total:
            logger.info(
                "All %d %s hooks%s completed successfully (total: %dms)",
                total,
                phase,
                scope,
                total_ms,
            )
        else:
            logger.warning(
                "%d/%d %s hooks%s completed successfully (total: %dms)",
                succeeded,
                total,
                phase,
                scope,
                total_ms,
            )
        return results

    def validate_hooks(
        self,
        actions: Sequence[HookAction],
        context: HookContext,
    ) -> list[HookValidationError | None]:
        """Validate each action without running anything. ``None`` means valid."""
        outcomes: list[HookValidationError | None] = []
        for action in actions:
            try:
                self._executor.validate(action, context)
            except HookValidationError as exc:
                outcomes.append(exc)
            except Exception as exc:
                outcomes.append(HookValidationError(str(exc)))
            else:
                outcomes.append(None)
        return outcomes

    def _run_one(self, action: HookAction, context: HookContext) -> HookResult:
        """Validate then execute a single action, converting errors to a result."""
        try:
            self._executor.validate(action, context)
        except Exception as exc:
            return HookResult(success=False, error=f"Validation failed: {exc}")

        try:
            return self._executor.execute(action, context)
        except Exception as exc:
            logger.debug("Hook %s raised", action.describe(), exc_info=True)
            return HookResult(success=False, error=str(exc))
