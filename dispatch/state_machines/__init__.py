from .job_state import ALLOWED_FROM, LifecycleTracker

__all__ = ["ALLOWED_FROM", "LifecycleTracker"]
