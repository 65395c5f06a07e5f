"""Exception hierarchy for dotsnapshot.

Per-unit failures (one hook, one plugin, one restore step) are captured in
result objects and never raised past the service that produced them. The
exceptions below cover the cases that do surface to a caller:

    DotSnapshotError
    +-- HookValidationError   (also a ValueError)
    +-- HookExecutionError
    |   +-- HookTimeoutError
    +-- SnapshotNotFoundError (also a LookupError)
    +-- InvalidSnapshotNameError (also a ValueError)
    +-- PluginNotFoundError   (also a LookupError)
    +-- PartialFailureError

Every class carries a ``code`` used by the CLI when it converts an error into
a :class:`~dotsnapshot.services.result.ServiceError`.
"""

from __future__ import annotations


class DotSnapshotError(Exception):
    """Base exception for all dotsnapshot errors."""

    code: str = "ERROR"


class HookValidationError(DotSnapshotError, ValueError):
    """A hook action cannot run: missing script, file, or an invalid field."""

    code = "HOOK_INVALID"


class HookExecutionError(DotSnapshotError):
    """A hook action was attempted and failed (spawn failure, I/O error)."""

    code = "HOOK_FAILED"


class HookTimeoutError(HookExecutionError):
    """A script hook exceeded its timeout budget."""

    code = "HOOK_TIMEOUT"

    def __init__(self, timeout: int) -> None:
        super().__init__(f"Timeout after {timeout} seconds")
        self.timeout = timeout


class SnapshotNotFoundError(DotSnapshotError, LookupError):
    """The named snapshot does not exist under the snapshots directory."""

    code = "SNAPSHOT_NOT_FOUND"

    def __init__(self, name: str) -> None:
        super().__init__(f"Snapshot '{name}' not found")
        self.name = name


class InvalidSnapshotNameError(DotSnapshotError, ValueError):
    """An explicit snapshot name is empty or is not a single path component."""

    code = "INVALID_NAME"

    def __init__(self, name: str) -> None:
        super().__init__(f"Invalid snapshot name: '{name}'")
        self.name = name


class PluginNotFoundError(DotSnapshotError, LookupError):
    """No registered plugin matches the requested name."""

    code = "PLUGIN_NOT_FOUND"

    def __init__(self, name: str) -> None:
        super().__init__(f"Plugin '{name}' not available")
        self.name = name


class PartialFailureError(DotSnapshotError):
    """Some, but not all, units of a batch failed."""

    code = "PARTIAL_FAILURE"

    def __init__(self, failed: list[str], total: int) -> None:
        names = ", ".join(failed)
        super().__init__(f"{len(failed)}/{total} failed: {names}")
        self.failed = failed
        self.total = total
