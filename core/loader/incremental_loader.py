# warmstart/core/loader/incremental_loader.py
"""
Idle-triggered incremental loader.

Turns a long block of startup work into short increments: one deferred task
per idle opportunity, abandoned and put back at the head of the queue as soon
as the host reports input. Tasks that raise are logged and dropped so one bad
task cannot wedge the rest.

Interruption is cooperative. A task is checked for pending input before it
starts and wherever it calls the checkpoint it is given; work between two
checkpoints runs to completion.
"""
from __future__ import annotations

import logging
from collections import deque
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Callable, Deque, Dict, Iterable, List, Optional

from core.exceptions import TaskFailure, TaskInterrupted
from core.loader.task_queue import TaskQueue
from core.loader.tasks import DeferredTask, TaskToken, task_from_token
from core.results import ErrorKind, TaskOutcome
from domain.ports.scheduler_port import IdleHandle, IdleSchedulerPort

logger = logging.getLogger(__name__)

DEFAULT_FIRST_IDLE_DELAY = 2.0
DEFAULT_IDLE_DELAY = 0.75
MAX_RECORDED_OUTCOMES = 100


class LoaderState(str, Enum):
    IDLE_EMPTY = 'idle_empty'
    IDLE_DRAINING = 'idle_draining'
    DRAINING_INTERRUPTED = 'draining_interrupted'


@dataclass
class LoaderStats:
    loaded: int = 0
    skipped: int = 0
    failed: int = 0
    interrupted: int = 0


def _no_checkpoint() -> None:
    return None


class IncrementalLoader:

    def __init__(
        self,
        scheduler: IdleSchedulerPort,
        first_idle_delay: float = DEFAULT_FIRST_IDLE_DELAY,
        idle_delay: float = DEFAULT_IDLE_DELAY,
        load_immediately: bool = False,
        task_factory: Callable[[TaskToken], DeferredTask] = task_from_token,
        verbose: bool = False,
    ) -> None:
        if first_idle_delay < 0 or idle_delay < 0:
            raise ValueError('idle delays must not be negative')
        self.scheduler = scheduler
        self.first_idle_delay = first_idle_delay
        self.idle_delay = idle_delay
        self.load_immediately = load_immediately
        self.task_factory = task_factory
        self.verbose = verbose
        self.queue = TaskQueue()
        self.state = LoaderState.IDLE_EMPTY
        self.stats = LoaderStats()
        self.armed = False
        self.outcomes: Deque[TaskOutcome] = deque(maxlen=MAX_RECORDED_OUTCOMES)
        self._handle: Optional[IdleHandle] = None

    @property
    def immediate_mode(self) -> bool:
        return self.load_immediately or self.first_idle_delay == 0

    @property
    def pending(self) -> List[str]:
        return self.queue.names()

    @property
    def is_scheduled(self) -> bool:
        return self._handle is not None

    def register(self, tasks: Iterable[TaskToken], run_now: bool = False) -> List[DeferredTask]:
        """Queue ``tasks`` behind everything already registered; ``run_now`` starts draining at once."""
        new_tasks = [self.task_factory(token) for token in tasks]
        self.queue.extend(new_tasks)
        logger.debug('Queued %d deferred task(s); %d pending', len(new_tasks), len(self.queue))
        if run_now:
            self._cancel_scheduled()
            if self.immediate_mode:
                self.drain_all()
            else:
                self._drain_step()
        elif self.armed and new_tasks and not self.is_scheduled:
            if self.immediate_mode:
                self.drain_all()
            else:
                self._schedule(self.idle_delay)
        return new_tasks

    def arm(self) -> None:
        """Start draining once host startup is complete."""
        if self.armed:
            logger.debug('Incremental loader already armed')
            return
        self.armed = True
        if self.immediate_mode:
            logger.debug('Loading %d deferred task(s) immediately', len(self.queue))
            self.drain_all()
        elif self.queue:
            self._schedule(self.first_idle_delay)

    def drain_all(self) -> List[TaskOutcome]:
        """Run every pending task back-to-back without idle gating or interruption."""
        self._cancel_scheduled()
        outcomes = []
        while True:
            task = self.queue.pop()
            if task is None:
                break
            if self._skip_if_satisfied(task):
                continue
            self.state = LoaderState.IDLE_DRAINING
            outcomes.append(self._attempt(task, interruptible=False))
        self._finish()
        return outcomes

    def _drain_step(self) -> Optional[TaskOutcome]:
        """Attempt one task; scheduled once per idle opportunity."""
        self._handle = None
        while True:
            task = self.queue.pop()
            if task is None:
                self._finish()
                return None
            if not self._skip_if_satisfied(task):
                break

        self.state = LoaderState.IDLE_DRAINING
        outcome = self._attempt(task, interruptible=True)
        if outcome.interrupted:
            self.queue.push_front(task)
            self.state = LoaderState.DRAINING_INTERRUPTED
            self._schedule(self.idle_delay)
        elif self.queue:
            self._schedule(self.idle_delay)
        else:
            self._finish()
        return outcome

    def _skip_if_satisfied(self, task: DeferredTask) -> bool:
        if not task.is_satisfied():
            return False
        self.stats.skipped += 1
        if self.verbose:
            logger.debug('Already loaded %s (%d left)', task.name, len(self.queue))
        return True

    def _attempt(self, task: DeferredTask, interruptible: bool) -> TaskOutcome:
        logger.info('Incrementally loading %s', task.name)
        if self.verbose:
            logger.debug('iloader: %s (%d left)', task.name, len(self.queue))
        checkpoint = self._checkpoint_for(task) if interruptible else _no_checkpoint
        try:
            task.attempt(checkpoint)
        except TaskInterrupted:
            self.stats.interrupted += 1
            logger.debug('Input arrived while loading %s; will retry it first', task.name)
            outcome = TaskOutcome(task.name, ErrorKind.TASK_INTERRUPTED, 'interrupted by input')
        except Exception as exc:
            failure = TaskFailure(task.name, exc)
            self.stats.failed += 1
            logger.error('%s', failure)
            outcome = TaskOutcome(task.name, ErrorKind.TASK_FAILURE, str(failure))
        else:
            self.stats.loaded += 1
            outcome = TaskOutcome(task.name, ErrorKind.OK)
        self.outcomes.append(outcome)
        return outcome

    def _checkpoint_for(self, task: DeferredTask) -> Callable[[], None]:

        def checkpoint() -> None:
            if self.scheduler.is_input_pending():
                raise TaskInterrupted(task.name)

        return checkpoint

    def _schedule(self, delay: float) -> None:
        self._cancel_scheduled()
        self._handle = self.scheduler.call_when_idle(delay, self._drain_step)

    def _cancel_scheduled(self) -> None:
        if self._handle is not None:
            self.scheduler.cancel(self._handle)
            self._handle = None

    def _finish(self) -> None:
        was_draining = self.state is not LoaderState.IDLE_EMPTY
        self.state = LoaderState.IDLE_EMPTY
        if was_draining:
            logger.info('Finished incremental loading')

    def reset(self) -> None:
        """Drop every pending task and disarm; used on a forced re-bootstrap."""
        self._cancel_scheduled()
        self.queue.clear()
        self.outcomes.clear()
        self.state = LoaderState.IDLE_EMPTY
        self.armed = False

    def get_stats(self) -> Dict[str, Any]:
        return {**asdict(self.stats), 'pending': len(self.queue), 'state': self.state.value}
