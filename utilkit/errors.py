from __future__ import annotations

from typing import Any, List, NamedTuple, Optional


class UtilkitError(Exception):
    """Base class for utilkit-specific errors."""


# Encryption
class ConfigurationError(UtilkitError):
    """A requested algorithm or parameter is not available from the provider."""


class FormatError(UtilkitError, ValueError):
    """Ciphertext envelope is structurally invalid."""


class DecryptionError(UtilkitError):
    """Ciphertext did not validate against the key (wrong password or corrupted data)."""


# Parallel execution
class TaskFailure(NamedTuple):
    index: int
    item: Any
    error: BaseException


class TaskExecutionError(UtilkitError):
    """One or more units of parallel work raised.

    ``failures`` lists every failed unit that was observed; ``results`` holds
    the outputs of the units that completed normally (unordered).
    """

    def __init__(self, message: str, failures: Optional[List[TaskFailure]] = None, results: Optional[list] = None):
        super().__init__(message)
        self.failures: List[TaskFailure] = list(failures or [])
        self.results: list = list(results or [])


class TaskTimeoutError(TaskExecutionError, TimeoutError):
    pass


class TaskCancelledError(TaskExecutionError):
    pass
