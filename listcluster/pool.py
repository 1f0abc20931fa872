from __future__ import annotations

"""
Bounded worker pool that scores SimilarityTasks with the RBO engine.

Layout
------
* ``concurrency`` worker threads pull tasks from a bounded queue, run the
  engine and push exactly one outcome (an Edge or a PoolError) per task.
* One collector thread owns the edge/error accumulators and the pending
  counter.  Nothing else appends to them.
* ``add`` bumps the pending counter *before* the task is queued, so the
  counter can never reach zero while a submitted task is still in flight.

The pool is single-use: ``add`` until ``done_adding``, then ``results``.
"""

import queue
import threading
from typing import Callable, List, Optional, Tuple, Union

from loguru import logger

from .config import RESULT_BUFFER_SIZE, TASK_BUFFER_SIZE
from .errors import PoolClosedError, PoolError, TaskCancelledError
from .pipeline_types import Edge, RankedList, RBOResult, SimilarityTask
from .rbo import rank_biased_overlap

# compute(source, target, p, cancel_event) -> RBOResult
ComputeFn = Callable[[RankedList, RankedList, float, Optional[threading.Event]], RBOResult]

Outcome = Union[Edge, PoolError]

# marks end of intake on the task queue and end of a worker on the outcome queue
_STOP = object()


class WorkerPool:
    """Fixed-size thread pool turning SimilarityTasks into Edges."""

    def __init__(
        self,
        concurrency: int,
        task_buffer: int = TASK_BUFFER_SIZE,
        result_buffer: int = RESULT_BUFFER_SIZE,
        cancel_event: Optional[threading.Event] = None,
        compute: ComputeFn = rank_biased_overlap,
    ) -> None:
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")

        self.concurrency = concurrency
        self._compute = compute
        self._cancel = cancel_event if cancel_event is not None else threading.Event()

        self._tasks: queue.Queue = queue.Queue(maxsize=max(1, task_buffer))
        self._outcomes: queue.Queue = queue.Queue(maxsize=max(1, result_buffer))

        # intake lock: closed-check, counter bump and enqueue happen as one step
        self._intake_lock = threading.Lock()
        self._closed = False

        # guarded by _cond; only the collector mutates after construction
        self._cond = threading.Condition()
        self._pending = 0
        self._edges: List[Edge] = []
        self._errors: List[PoolError] = []

        self._workers = [
            threading.Thread(target=self._run_worker, name=f"rbo-worker-{i}", daemon=True)
            for i in range(concurrency)
        ]
        self._collector = threading.Thread(target=self._collect, name="rbo-collector", daemon=True)

        for worker in self._workers:
            worker.start()
        self._collector.start()
        logger.debug("Worker pool started with {} workers", concurrency)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    @property
    def pending(self) -> int:
        with self._cond:
            return self._pending

    def add(self, task: SimilarityTask) -> None:
        """
        Submit one task.  Blocks while the task buffer is full.

        Raises ``PoolClosedError`` once ``done_adding`` has been called.
        """
        with self._intake_lock:
            if self._closed:
                raise PoolClosedError("cannot add tasks after done_adding()")
            with self._cond:
                self._pending += 1
            self._tasks.put(task)

    def done_adding(self) -> None:
        """Close intake.  Safe to call more than once."""
        with self._intake_lock:
            if self._closed:
                return
            self._closed = True
            for _ in range(self.concurrency):
                self._tasks.put(_STOP)
        logger.debug("Worker pool intake closed")

    def cancel(self) -> None:
        """
        Abandon the batch.  Tasks not yet started finish as cancelled errors,
        so ``results`` still returns once every task has an outcome.
        """
        if not self._cancel.is_set():
            logger.info("Cancelling worker pool ({} tasks pending)", self.pending)
        self._cancel.set()

    def results(self, timeout: Optional[float] = None) -> Tuple[List[Edge], Optional[PoolError]]:
        """
        Wait for every submitted task to finish.

        Closes intake if the caller has not done so.  Returns all edges that
        were computed plus the first error seen (``None`` if no pair failed).
        Raises ``TimeoutError`` if ``timeout`` seconds pass first.
        """
        self.done_adding()
        with self._cond:
            if not self._cond.wait_for(lambda: self._pending == 0, timeout=timeout):
                raise TimeoutError(
                    f"worker pool still has {self._pending} pending tasks after {timeout}s"
                )
            edges = list(self._edges)
            first_error = self._errors[0] if self._errors else None
        self._join()
        return edges, first_error

    def errors(self) -> List[PoolError]:
        """Every error collected so far, in arrival order."""
        with self._cond:
            return list(self._errors)

    def __enter__(self) -> "WorkerPool":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.cancel()
        self.done_adding()
        self._join()

    # ------------------------------------------------------------------
    # Threads
    # ------------------------------------------------------------------

    def _execute(self, task: SimilarityTask) -> Outcome:
        source, target = task.source.label, task.target.label
        if self._cancel.is_set():
            return PoolError(source, target, TaskCancelledError("batch cancelled before pair started"))
        try:
            result = self._compute(task.source, task.target, task.p, self._cancel)
            return Edge(source=source, target=target, similarity=float(result.extrapolated))
        except Exception as exc:
            return PoolError(source, target, exc)

    def _run_worker(self) -> None:
        while True:
            task = self._tasks.get()
            if task is _STOP:
                break
            self._outcomes.put(self._execute(task))
        self._outcomes.put(_STOP)

    def _collect(self) -> None:
        running = self.concurrency
        while running:
            outcome = self._outcomes.get()
            if outcome is _STOP:
                running -= 1
                continue
            with self._cond:
                if isinstance(outcome, PoolError):
                    self._errors.append(outcome)
                else:
                    self._edges.append(outcome)
                self._pending -= 1
                if self._pending == 0:
                    self._cond.notify_all()
            if isinstance(outcome, PoolError):
                logger.warning("RBO failed for {} -> {}: {}", outcome.source, outcome.target, outcome.cause)
        logger.debug("Worker pool collector finished")

    def _join(self) -> None:
        for worker in self._workers:
            worker.join()
        self._collector.join()
