from __future__ import annotations

import logging
import os
import threading
import time
import concurrent.futures as _fut
from typing import Any, Callable, Iterable, List, Optional, Tuple, TypeVar

from .constants import CANCEL_POLL_INTERVAL, DEFAULT_TIMEOUT
from .errors import TaskCancelledError, TaskExecutionError, TaskFailure, TaskTimeoutError


logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

_ERROR_POLICIES = ("raise", "collect")


def default_parallelism() -> int:
    """Available cores minus two, but never fewer than three workers."""
    return max(3, (os.cpu_count() or 1) - 2)


def _resolve_parallelism(parallelism: Optional[int]) -> int:
    if parallelism is None:
        return default_parallelism()
    if parallelism < 1:
        raise ValueError("parallelism must be at least 1")
    return int(parallelism)


def _remaining(deadline: Optional[float]) -> Optional[float]:
    return None if deadline is None else max(0.0, deadline - time.monotonic())


def _wait_slice(deadline: Optional[float], cancel: Optional[threading.Event]) -> Optional[float]:
    remaining = _remaining(deadline)
    if cancel is None:
        return remaining
    if remaining is None:
        return CANCEL_POLL_INTERVAL
    return min(remaining, CANCEL_POLL_INTERVAL)


def _cancel_all(futures: Iterable[_fut.Future]) -> None:
    for f in futures:
        f.cancel()


def _describe(name: str, failure: TaskFailure) -> str:
    err = failure.error
    return f"{name}: unit {failure.index} (item={failure.item!r}) failed: {type(err).__name__}: {err}"


def _execute(
    name: str,
    items: Iterable[T],
    fn: Callable[[T], Any],
    parallelism: Optional[int],
    *,
    executor: Optional[_fut.Executor] = None,
    timeout: Optional[float] = DEFAULT_TIMEOUT,
    errors: str = "raise",
    cancel: Optional[threading.Event] = None,
) -> List[Tuple[int, T, Any]]:
    """Run ``fn`` once per item and return ``(index, item, value)`` in completion order.

    Blocks until every unit has finished or the deadline passes. With
    ``errors="raise"`` the first failure cancels the units that have not
    started yet and waits for running ones; with
    ``errors="collect"`` all units run and failures are reported together.
    """
    if errors not in _ERROR_POLICIES:
        raise ValueError(f"errors must be one of {_ERROR_POLICIES}, got {errors!r}")
    workers = _resolve_parallelism(parallelism)
    work = list(items)
    own_executor = executor is None
    if own_executor:
        executor = _fut.ThreadPoolExecutor(max_workers=workers, thread_name_prefix="utilkit-" + name)
    deadline = None if timeout is None else time.monotonic() + timeout
    completed: List[Tuple[int, T, Any]] = []
    failures: List[TaskFailure] = []
    abandon = False
    futures: dict = {}

    logger.debug("%s: %d units on %d workers", name, len(work), workers)
    try:
        futures = {executor.submit(fn, item): (i, item) for i, item in enumerate(work)}
        pending = set(futures)
        while pending:
            done, pending = _fut.wait(pending, timeout=_wait_slice(deadline, cancel), return_when=_fut.FIRST_COMPLETED)
            for f in done:
                index, item = futures[f]
                if f.cancelled():
                    failures.append(TaskFailure(index, item, _fut.CancelledError()))
                    continue
                exc = f.exception()
                if exc is None:
                    completed.append((index, item, f.result()))
                else:
                    failure = TaskFailure(index, item, exc)
                    logger.debug("%s", _describe(name, failure))
                    failures.append(failure)

            if failures and errors == "raise":
                _cancel_all(pending)
                first = failures[0]
                logger.warning("%s: stopping after failure of unit %d", name, first.index)
                raise TaskExecutionError(
                    _describe(name, first), failures, [v for _, _, v in completed]
                ) from first.error
            if not pending:
                break
            if cancel is not None and cancel.is_set():
                _cancel_all(pending)
                abandon = True
                raise TaskCancelledError(
                    f"{name}: cancelled with {len(pending)} of {len(work)} units unfinished",
                    failures,
                    [v for _, _, v in completed],
                )
            if deadline is not None and time.monotonic() >= deadline:
                _cancel_all(pending)
                abandon = True
                logger.warning("%s: timed out after %.1fs, abandoning %d units", name, timeout, len(pending))
                raise TaskTimeoutError(
                    f"{name}: timed out after {timeout}s with {len(pending)} of {len(work)} units unfinished",
                    failures,
                    [v for _, _, v in completed],
                )
    finally:
        if own_executor:
            if not abandon:
                _cancel_all(futures)
                # Running units are waited for, but not past the deadline
                _, unfinished = _fut.wait(futures, timeout=_remaining(deadline))
                abandon = bool(unfinished)
            executor.shutdown(wait=not abandon, cancel_futures=True)

    if failures:
        logger.warning("%s: %d of %d units failed", name, len(failures), len(work))
        raise TaskExecutionError(
            f"{name}: {len(failures)} of {len(work)} units failed; first: " + _describe(name, failures[0]),
            failures,
            [v for _, _, v in completed],
        ) from failures[0].error
    logger.debug("%s: finished %d units", name, len(work))
    return completed


def parallel_map(
    items: Iterable[T],
    transform: Callable[[T], R],
    parallelism: Optional[int] = None,
    *,
    executor: Optional[_fut.Executor] = None,
    timeout: Optional[float] = DEFAULT_TIMEOUT,
    errors: str = "raise",
    cancel: Optional[threading.Event] = None,
) -> List[R]:
    """Apply ``transform`` to every item on a bounded worker pool.

    The result holds exactly one value per item, in completion order: compare
    it as a multiset, not as a sequence.

    Args:
        items: Input elements.
        transform: Function applied to each element.
        parallelism: Worker count; defaults to :func:`default_parallelism`.
        executor: Existing executor to submit to. It is left running and its
            own worker count bounds the parallelism.
        timeout: Seconds to wait for the whole batch; ``None`` waits forever.
        errors: ``"raise"`` stops at the first failure; ``"collect"`` runs every
            unit and reports all failures in one :class:`TaskExecutionError`.
        cancel: Event that, once set, cancels the units not yet started.

    Raises:
        TaskExecutionError: A unit raised.
        TaskTimeoutError: ``timeout`` elapsed.
        TaskCancelledError: ``cancel`` was set.
    """
    done = _execute(
        "parallel_map", items, transform, parallelism,
        executor=executor, timeout=timeout, errors=errors, cancel=cancel,
    )
    return [value for _, _, value in done]


def parallel_filter(
    items: Iterable[T],
    predicate: Callable[[T], bool],
    parallelism: Optional[int] = None,
    *,
    executor: Optional[_fut.Executor] = None,
    timeout: Optional[float] = DEFAULT_TIMEOUT,
    errors: str = "raise",
    cancel: Optional[threading.Event] = None,
) -> List[T]:
    """Keep the items for which ``predicate`` holds, evaluated on a bounded worker pool.

    Same execution and error model as :func:`parallel_map`; order is not preserved.
    """
    done = _execute(
        "parallel_filter", items, predicate, parallelism,
        executor=executor, timeout=timeout, errors=errors, cancel=cancel,
    )
    return [item for _, item, keep in done if keep]


def parallel_stream_map(
    items: Iterable[T],
    transform: Callable[[T], R],
    parallelism: Optional[int] = None,
    *,
    timeout: Optional[float] = DEFAULT_TIMEOUT,
    cancel: Optional[threading.Event] = None,
) -> List[R]:
    """Map on a pool scoped to this call; values come back in input order."""
    done = _execute("parallel_stream_map", items, transform, parallelism, timeout=timeout, cancel=cancel)
    return [value for _, _, value in sorted(done, key=lambda d: d[0])]


def parallel_stream_intermediate(
    items: Iterable[T],
    action: Callable[[T], Any],
    parallelism: Optional[int] = None,
    *,
    timeout: Optional[float] = DEFAULT_TIMEOUT,
    cancel: Optional[threading.Event] = None,
) -> List[T]:
    """Run ``action`` on every item for its side effect and return the items."""
    done = _execute("parallel_stream_intermediate", items, action, parallelism, timeout=timeout, cancel=cancel)
    return [item for _, item, _ in sorted(done, key=lambda d: d[0])]


__all__ = [
    "default_parallelism",
    "parallel_map",
    "parallel_filter",
    "parallel_stream_map",
    "parallel_stream_intermediate",
]
