#Expose the high-level pipeline pieces:
#Request intake (validation)
#Matcher (ranking + reservation)
#Lifecycle tracker (state machine)
#DispatchCore orchestrator (the "one call" entry point)

from .dispatcher import DispatchCore
from .events import InMemoryNotifier, JobEvent, JobEventType, Notifier
from .exceptions import (
    AlreadyAssigned,
    DispatchError,
    DuplicateWorker,
    FinalizationFailed,
    IllegalTransition,
    InvalidJobRequest,
    NoWorkerAvailable,
    StaleUpdate,
    UnknownJob,
    UnknownWorker,
)
from .intake import RequestIntake
from .matcher import Matcher
from .state_machines.job_state import LifecycleTracker

__all__ = [
    "DispatchCore",
    "RequestIntake",
    "Matcher",
    "LifecycleTracker",
    "InMemoryNotifier",
    "JobEvent",
    "JobEventType",
    "Notifier",
    "AlreadyAssigned",
    "DispatchError",
    "DuplicateWorker",
    "FinalizationFailed",
    "IllegalTransition",
    "InvalidJobRequest",
    "NoWorkerAvailable",
    "StaleUpdate",
    "UnknownJob",
    "UnknownWorker",
]
