"""Task lifecycle engine for taskcore."""

from taskcore.engine.lifecycle import InstanceLifecycleManager
from taskcore.engine.propagation import ChangePropagator
from taskcore.engine.reconcile import BatchReconciler

__all__ = [
    "InstanceLifecycleManager",
    "ChangePropagator",
    "BatchReconciler",
]
