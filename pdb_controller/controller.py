"""Main controller loop for the PDB Controller."""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from kubernetes.client.rest import ApiException

from .config import ControllerConfig
from .reconciler import NamespaceResult, PDBReconciler
from .utils import format_duration

logger = logging.getLogger(__name__)


@dataclass
class PassResult:
    """Outcome of one pass over all namespaces."""
    namespaces: List[NamespaceResult] = field(default_factory=list)
    errors: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def created(self) -> int:
        return sum(len(ns.created) for ns in self.namespaces)

    @property
    def updated(self) -> int:
        return sum(len(ns.updated) for ns in self.namespaces)

    @property
    def deleted(self) -> int:
        return sum(len(ns.deleted) for ns in self.namespaces)


class PDBController:
    """
    Keeps PodDisruptionBudgets in sync with the Deployments and
    StatefulSets in the cluster on a fixed interval.
    """

    def __init__(self, cluster, config: Optional[ControllerConfig] = None):
        """
        Initialize the controller.

        Args:
            cluster: ClusterClient used for all reads and writes
            config: Controller configuration (defaults if omitted)
        """
        self.cluster = cluster
        self.config = config or ControllerConfig()
        self.reconciler = PDBReconciler(cluster, self.config)

        self._stop_event = threading.Event()

    def _namespaces(self) -> List[str]:
        if self.config.namespace:
            return [self.config.namespace]
        return self.cluster.list_namespaces()

    def run_once(self, now: Optional[datetime] = None) -> PassResult:
        """
        Reconcile every namespace once.

        A failing namespace does not stop the others; its errors are
        collected on the returned PassResult.
        """
        result = PassResult()

        try:
            namespaces = self._namespaces()
        except ApiException as e:
            logger.error(f"Error listing namespaces: {e}")
            result.errors[""] = [f"listing namespaces: {e.status} {e.reason}"]
            return result

        for namespace in namespaces:
            ns_result = self.reconciler.reconcile_namespace(namespace, now)
            result.namespaces.append(ns_result)
            if not ns_result.ok:
                result.errors[namespace] = ns_result.errors

        if result.created or result.updated or result.deleted:
            logger.info(
                f"Pass complete: {result.created} created, {result.updated} updated, "
                f"{result.deleted} deleted across {len(namespaces)} namespace(s)"
            )

        for namespace, errors in result.errors.items():
            logger.error(f"Namespace {namespace} had {len(errors)} error(s): {'; '.join(errors)}")

        return result

    def run(self, stop_event: Optional[threading.Event] = None) -> None:
        """
        Run a pass at startup and then every interval until stopped.

        Args:
            stop_event: Event that stops the loop when set (defaults to
                the controller's own, set by stop())
        """
        if stop_event is not None:
            self._stop_event = stop_event

        logger.info("Starting PDB Controller")
        logger.info(f"Namespace: {self.config.namespace or 'all namespaces'}")
        logger.info(f"Interval: {self.config.interval}s")
        logger.info(f"Non-ready TTL: {format_duration(self.config.non_ready_ttl)}")
        logger.info(f"Dry run: {self.config.dry_run}")

        while not self._stop_event.is_set():
            try:
                self.run_once()
            except Exception as e:
                logger.error(f"Unexpected error in reconciliation pass: {e}")

            if self._stop_event.wait(self.config.interval):
                break

        logger.info("PDB Controller stopped")

    def stop(self) -> None:
        """Stop the controller."""
        logger.info("Stopping controller...")
        self._stop_event.set()
