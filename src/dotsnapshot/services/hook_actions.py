"""Validation and execution of individual hook actions.

Validation and execution are separate, explicit steps. ``validate`` raises
:class:`HookValidationError` and touches nothing; ``execute`` assumes a
validated action and always returns a :class:`HookResult` for the outcomes it
anticipates (non-zero exit, timeout, I/O failure).

INVARIANT: Callers run ``validate`` before ``execute`` for every action.
"""

from __future__ import annotations

import logging
import os
import signal
import subprocess
from collections.abc import Callable
from typing import Any

from dotsnapshot.config.logging import TRACE
from dotsnapshot.domain.errors import HookExecutionError, HookTimeoutError, HookValidationError
from dotsnapshot.domain.hooks import (
    LOG_LEVELS,
    BackupAction,
    CleanupAction,
    HookAction,
    HookContext,
    HookResult,
    LogAction,
    NotifyAction,
    ScriptAction,
)
from dotsnapshot.infrastructure.filesystem import cleanup_pattern, cleanup_temp_files, copy_path

logger = logging.getLogger(__name__)

# Exported to every script hook alongside its configured env vars.
SNAPSHOT_DIR_ENV_VAR = "DOTSNAPSHOT_SNAPSHOT_DIR"

_LOG_LEVEL_NUMBERS: dict[str, int] = {
    "trace": TRACE,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

_DEFAULT_NOTIFY_TITLE = "dotsnapshot"

# Seconds to wait for pipes to drain after a timed-out script is killed.
_REAP_TIMEOUT = 2


def _kill_group(proc: subprocess.Popen[str]) -> None:
    """Kill *proc* and everything it spawned, then reap it."""
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass
    try:
        proc.communicate(timeout=_REAP_TIMEOUT)
    except subprocess.TimeoutExpired:
        # A descendant left the group and still holds the pipes.
        for stream in (proc.stdout, proc.stderr):
            if stream is not None:
                stream.close()
        proc.wait()


class HookExecutor:
    """Dispatches each action variant to its validator and runner."""

    def __init__(self) -> None:
        self._validators: dict[type[Any], Callable[[Any, HookContext], None]] = {
            ScriptAction: self._validate_script,
            LogAction: self._validate_log,
            NotifyAction: self._validate_notify,
            BackupAction: self._validate_backup,
            CleanupAction: self._validate_cleanup,
        }
        self._runners: dict[type[Any], Callable[[Any, HookContext], HookResult]] = {
            ScriptAction: self._run_script,
            LogAction: self._run_log,
            NotifyAction: self._run_notify,
            BackupAction: self._run_backup,
            CleanupAction: self._run_cleanup,
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def validate(self, action: HookAction, context: HookContext) -> None:
        """Raise :class:`HookValidationError` if *action* cannot run."""
        self._validators[type(action)](action, context)

    def execute(self, action: HookAction, context: HookContext) -> HookResult:
        """Run *action*. ``execution_time_ms`` is filled in by the caller."""
        return self._runners[type(action)](action, context)

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @staticmethod
    def _validate_script(action: ScriptAction, context: HookContext) -> None:
        if not action.command.strip():
            msg = "Script command cannot be empty"
            raise HookValidationError(msg)

        script_path = context.hooks_config.resolve_script_path(action.command)
        if not script_path.exists():
            msg = f"Script not found: {action.command} → {script_path}"
            raise HookValidationError(msg)

        if action.working_dir is not None:
            working_dir = action.working_dir.expanduser()
            if not working_dir.exists():
                msg = f"Working directory does not exist: {working_dir}"
                raise HookValidationError(msg)

    @staticmethod
    def _validate_log(action: LogAction, _context: HookContext) -> None:
        if not action.message.strip():
            msg = "Log message cannot be empty"
            raise HookValidationError(msg)
        if action.level not in LOG_LEVELS:
            msg = f"Invalid log level: {action.level}"
            raise HookValidationError(msg)

    @staticmethod
    def _validate_notify(action: NotifyAction, _context: HookContext) -> None:
        if not action.message.strip():
            msg = "Notification message cannot be empty"
            raise HookValidationError(msg)

    @staticmethod
    def _validate_backup(action: BackupAction, _context: HookContext) -> None:
        source = action.path.expanduser()
        if not source.exists():
            msg = f"Backup source path does not exist: {source}"
            raise HookValidationError(msg)

        parent = action.destination.expanduser().parent
        if not parent.exists():
            msg = f"Backup destination parent directory does not exist: {parent}"
            raise HookValidationError(msg)

    @staticmethod
    def _validate_cleanup(action: CleanupAction, _context: HookContext) -> None:
        for directory in action.directories:
            expanded = directory.expanduser()
            if not expanded.exists():
                msg = f"Cleanup directory does not exist: {expanded}"
                raise HookValidationError(msg)
        for pattern in action.patterns:
            if not pattern.strip():
                msg = "Cleanup pattern cannot be empty"
                raise HookValidationError(msg)

    # ------------------------------------------------------------------
    # Runners
    # ------------------------------------------------------------------

    def _run_script(self, action: ScriptAction, context: HookContext) -> HookResult:
        description = action.describe()
        try:
            completed = self._spawn(action, context)
        except HookExecutionError as exc:
            logger.debug("Script %s failed: %s", action.command, exc)
            return HookResult(success=False, error=str(exc), action_description=description)

        returncode, stdout, stderr = completed
        if returncode == 0:
            return HookResult(success=True, output=stdout, action_description=description)

        logger.debug("Script %s exited with code %s", action.command, returncode)
        return HookResult(
            success=False,
            output=stdout,
            error=stderr or f"Exited with code {returncode}",
            action_description=description,
        )

    @staticmethod
    def _spawn(action: ScriptAction, context: HookContext) -> tuple[int, str, str]:
        """Start the script and wait for it. Returns ``(returncode, stdout, stderr)``.

        The script runs in its own session; when it outlives ``action.timeout``
        its whole process group is killed, children included.
        """
        script_path = context.hooks_config.resolve_script_path(action.command)
        args = [context.interpolate(arg) for arg in action.args]

        env = dict(os.environ)
        env[SNAPSHOT_DIR_ENV_VAR] = str(context.snapshot_dir)
        for key, value in action.env_vars.items():
            env[key] = context.interpolate(value)

        cwd = action.working_dir.expanduser() if action.working_dir is not None else None
        logger.debug("Executing script: %s %s", script_path, args)

        try:
            proc = subprocess.Popen(
                [str(script_path), *args],
                cwd=cwd,
                env=env,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
                start_new_session=True,
            )
        except OSError as exc:
            msg = f"Failed to execute: {exc}"
            raise HookExecutionError(msg) from exc

        try:
            stdout, stderr = proc.communicate(timeout=action.timeout)
        except subprocess.TimeoutExpired as exc:
            _kill_group(proc)
            raise HookTimeoutError(action.timeout) from exc
        return proc.returncode, stdout, stderr

    @staticmethod
    def _run_log(action: LogAction, context: HookContext) -> HookResult:
        message = context.interpolate(action.message)
        level = _LOG_LEVEL_NUMBERS.get(action.level, logging.INFO)
        logger.log(level, "Hook log: %s", message)
        return HookResult(success=True, output=message, action_description=action.describe())

    @staticmethod
    def _run_notify(action: NotifyAction, context: HookContext) -> HookResult:
        message = context.interpolate(action.message)
        title = context.interpolate(action.title) if action.title else _DEFAULT_NOTIFY_TITLE
        # TODO: deliver through the desktop notification service when one is available.
        logger.info("%s: %s", title, message)
        return HookResult(
            success=bool(message.strip()),
            output=f"Notification: {message}",
            action_description=action.describe(),
        )

    @staticmethod
    def _run_backup(action: BackupAction, _context: HookContext) -> HookResult:
        source = action.path.expanduser()
        destination = action.destination.expanduser()
        description = action.describe()
        try:
            copy_path(source, destination)
        except OSError as exc:
            logger.debug("Failed to back up %s to %s: %s", source, destination, exc)
            return HookResult(
                success=False,
                error=f"Backup failed: {exc}",
                action_description=description,
            )
        logger.debug("Backed up %s to %s", source, destination)
        return HookResult(
            success=True,
            output=f"Backed up {source} to {destination}",
            action_description=description,
        )

    @staticmethod
    def _run_cleanup(action: CleanupAction, _context: HookContext) -> HookResult:
        removed = 0
        errors: list[str] = []

        for directory in action.directories:
            expanded = directory.expanduser()
            for pattern in action.patterns:
                try:
                    removed += cleanup_pattern(expanded, pattern)
                except OSError as exc:
                    errors.append(f"Failed to clean {expanded}/{pattern}: {exc}")

        if action.temp_files:
            removed += cleanup_temp_files()

        message = f"Cleaned up {removed} files"
        if errors:
            logger.debug("%s (with %d errors)", message, len(errors))
        else:
            logger.debug(message)
        return HookResult(
            success=not errors,
            output=message,
            error="; ".join(errors) if errors else None,
            action_description=action.describe(),
        )
