"""Snapshot of the cluster objects the reconciler reasons about."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .utils import contain_labels

logger = logging.getLogger(__name__)

DEPLOYMENT = "Deployment"
STATEFUL_SET = "StatefulSet"


def _match_labels(selector) -> Dict[str, str]:
    if selector is None:
        return {}
    if selector.match_expressions:
        logger.debug("Ignoring matchExpressions on selector, only matchLabels are supported")
    return dict(selector.match_labels or {})


@dataclass
class Workload:
    """A Deployment or StatefulSet as seen by the reconciler."""
    namespace: str
    name: str
    kind: str
    selector: Dict[str, str] = field(default_factory=dict)
    desired_replicas: int = 1
    pod_template_labels: Dict[str, str] = field(default_factory=dict)
    annotations: Dict[str, str] = field(default_factory=dict)
    uid: Optional[str] = None
    api_version: str = "apps/v1"

    @classmethod
    def from_k8s(cls, obj: Any, kind: str) -> "Workload":
        """Create a Workload from a V1Deployment or V1StatefulSet."""
        metadata = obj.metadata
        spec = obj.spec
        template_metadata = spec.template.metadata if spec.template else None

        # An unset replica count defaults to 1 on the API server
        replicas = spec.replicas if spec.replicas is not None else 1

        return cls(
            namespace=metadata.namespace or "",
            name=metadata.name,
            kind=kind,
            selector=_match_labels(spec.selector),
            desired_replicas=replicas,
            pod_template_labels=dict((template_metadata.labels if template_metadata else None) or {}),
            annotations=dict(metadata.annotations or {}),
            uid=metadata.uid,
        )

    @property
    def key(self) -> str:
        return f"{self.namespace}/{self.kind}/{self.name}"


@dataclass
class PodObservation:
    """A pod's labels and its most recent PodReady condition."""
    name: str
    labels: Dict[str, str] = field(default_factory=dict)
    ready: Optional[bool] = None
    last_transition_time: Optional[datetime] = None

    @classmethod
    def from_k8s(cls, pod: Any) -> "PodObservation":
        """Create a PodObservation from a V1Pod."""
        ready = None
        last_transition = None

        conditions = (pod.status.conditions if pod.status else None) or []
        for condition in conditions:
            if condition.type == "Ready":
                # "Unknown" is neither ready nor unready
                ready = {"True": True, "False": False}.get(condition.status)
                last_transition = condition.last_transition_time

        return cls(
            name=pod.metadata.name,
            labels=dict(pod.metadata.labels or {}),
            ready=ready,
            last_transition_time=last_transition,
        )


@dataclass
class DisruptionBudget:
    """A PodDisruptionBudget, managed or user owned."""
    namespace: str
    name: str
    selector: Dict[str, str] = field(default_factory=dict)
    labels: Dict[str, str] = field(default_factory=dict)
    min_available: Optional[Any] = None
    max_unavailable: Optional[Any] = None

    @classmethod
    def from_k8s(cls, pdb: Any) -> "DisruptionBudget":
        """Create a DisruptionBudget from a V1PodDisruptionBudget."""
        spec = pdb.spec

        return cls(
            namespace=pdb.metadata.namespace or "",
            name=pdb.metadata.name,
            selector=_match_labels(spec.selector if spec else None),
            labels=dict(pdb.metadata.labels or {}),
            min_available=spec.min_available if spec else None,
            max_unavailable=spec.max_unavailable if spec else None,
        )


@dataclass
class NamespaceSnapshot:
    """Everything observed in one namespace at the start of a pass."""
    namespace: str
    workloads: List[Workload] = field(default_factory=list)
    pods: List[PodObservation] = field(default_factory=list)
    pdbs: List[DisruptionBudget] = field(default_factory=list)

    @classmethod
    def load(cls, cluster, namespace: str) -> "NamespaceSnapshot":
        """
        Read the current state of a namespace.

        Args:
            cluster: Object implementing the ClusterClient listing methods
            namespace: Namespace to read

        Raises:
            ApiException: if any listing fails
        """
        workloads = [
            Workload.from_k8s(obj, DEPLOYMENT) for obj in cluster.list_deployments(namespace)
        ]
        workloads += [
            Workload.from_k8s(obj, STATEFUL_SET) for obj in cluster.list_stateful_sets(namespace)
        ]
        pods = [PodObservation.from_k8s(pod) for pod in cluster.list_pods(namespace)]
        pdbs = [DisruptionBudget.from_k8s(pdb) for pdb in cluster.list_pdbs(namespace)]

        return cls(namespace=namespace, workloads=workloads, pods=pods, pdbs=pdbs)

    def pods_for(self, workload: Workload) -> List[PodObservation]:
        """Pods selected by the workload's selector."""
        if not workload.selector:
            return []
        return [pod for pod in self.pods if contain_labels(pod.labels, workload.selector)]
