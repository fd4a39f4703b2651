"""Keep PodDisruptionBudgets in sync with Deployments and StatefulSets."""

from .config import ControllerConfig
from .controller import PassResult, PDBController
from .reconciler import NamespacePlan, NamespaceResult, PDBReconciler, plan_namespace

__all__ = [
    "ControllerConfig",
    "NamespacePlan",
    "NamespaceResult",
    "PassResult",
    "PDBController",
    "PDBReconciler",
    "plan_namespace",
]
