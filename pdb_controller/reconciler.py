"""Reconciliation logic for the PDB Controller."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from kubernetes import client
from kubernetes.client.rest import ApiException

from .config import MIN_PROTECTED_REPLICAS, ControllerConfig
from .ownership import (
    owners_of,
    overlapping_workloads,
    partition_pdbs,
    resolve_ownership,
)
from .readiness import effective_ttl, is_stuck_unready
from .resources import DisruptionBudget, NamespaceSnapshot, Workload
from .utils import InvalidSelectorError, contain_labels, is_valid_selector, validate_selector

logger = logging.getLogger(__name__)

# Why a managed PDB is removed
REASON_ORPHANED = "orphaned"
REASON_STUCK_UNREADY = "stuck-unready"
REASON_INELIGIBLE = "ineligible"
REASON_USER_PROTECTED = "user-protected"

# Why a managed PDB is created or updated
REASON_UNPROTECTED = "unprotected"
REASON_REPLICAS_CHANGED = "replicas-changed"


@dataclass
class PDBAction:
    """A single planned mutation of a managed PDB."""
    pdb: DisruptionBudget
    reason: str
    workload: Optional[Workload] = None


@dataclass
class NamespacePlan:
    """Mutations needed to bring one namespace in line."""
    namespace: str
    creates: List[PDBAction] = field(default_factory=list)
    updates: List[PDBAction] = field(default_factory=list)
    deletes: List[PDBAction] = field(default_factory=list)
    # Deletes that free a name a create reuses, issued right before that create
    replaces: List[PDBAction] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not (self.creates or self.updates or self.deletes or self.replaces)


@dataclass
class NamespaceResult:
    """Outcome of reconciling one namespace."""
    namespace: str
    created: List[str] = field(default_factory=list)
    updated: List[str] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def desired_min_available(workload: Workload) -> int:
    """Keep all but one replica available."""
    return workload.desired_replicas - 1


def is_eligible(workload: Workload) -> bool:
    """Check whether a workload may be protected at all."""
    if not is_valid_selector(workload.selector):
        return False
    # A PDB copied from the selector must select the workload's own pods
    if not contain_labels(workload.pod_template_labels, workload.selector):
        return False
    return workload.desired_replicas >= MIN_PROTECTED_REPLICAS


def _stuck_workloads(snapshot: NamespaceSnapshot, config: ControllerConfig, now: datetime) -> set:
    stuck = set()
    for workload in snapshot.workloads:
        if not is_valid_selector(workload.selector):
            continue
        ttl = effective_ttl(workload, config.non_ready_ttl, config.ttl_annotation)
        if is_stuck_unready(snapshot.pods_for(workload), ttl, now):
            stuck.add(workload.key)
    return stuck


def plan_namespace(
    snapshot: NamespaceSnapshot,
    config: ControllerConfig,
    now: Optional[datetime] = None
) -> NamespacePlan:
    """
    Compute the managed PDB mutations for a namespace snapshot.

    Pure function of its arguments: nothing is remembered between passes
    and PDBs without the ownership marker never appear in the plan.

    Args:
        snapshot: Current state of the namespace
        config: Controller configuration (ownership marker, TTLs, naming)
        now: Reference time for readiness checks

    Returns:
        The NamespacePlan
    """
    now = now or datetime.now(timezone.utc)
    marker = config.owner_labels
    plan = NamespacePlan(namespace=snapshot.namespace)

    for workload in snapshot.workloads:
        try:
            validate_selector(workload.selector)
        except InvalidSelectorError as e:
            logger.warning(f"Skipping {workload.key}: {e}")

    stuck = _stuck_workloads(snapshot, config, now)

    # Planned PDBs count as protection for the workloads that follow
    known = list(snapshot.pdbs)

    for workload in snapshot.workloads:
        if not is_eligible(workload):
            continue

        if workload.key in stuck:
            logger.debug(f"Not protecting {workload.key}: pods stuck unready")
            continue

        if resolve_ownership(workload.pod_template_labels, known):
            continue

        pdb = DisruptionBudget(
            namespace=snapshot.namespace,
            name=config.pdb_name(workload.name),
            selector=dict(workload.selector),
            labels=dict(marker),
            min_available=desired_min_available(workload),
        )
        plan.creates.append(PDBAction(pdb=pdb, reason=REASON_UNPROTECTED, workload=workload))
        known.append(pdb)

    managed, user = partition_pdbs(snapshot.pdbs, marker)

    for pdb in managed:
        owners = owners_of(pdb, snapshot.workloads)

        for workload in overlapping_workloads(pdb, snapshot.workloads):
            logger.warning(
                f"PDB {snapshot.namespace}/{pdb.name} selector {pdb.selector} "
                f"overlaps {workload.key} without selecting it"
            )

        if not owners:
            plan.deletes.append(PDBAction(pdb=pdb, reason=REASON_ORPHANED))
            continue

        needed_by = []
        reason = REASON_INELIGIBLE
        for workload in owners:
            if not is_eligible(workload):
                continue
            if workload.key in stuck:
                reason = REASON_STUCK_UNREADY
                continue
            if resolve_ownership(workload.pod_template_labels, user):
                reason = REASON_USER_PROTECTED
                continue
            needed_by.append(workload)

        if not needed_by:
            plan.deletes.append(PDBAction(pdb=pdb, reason=reason, workload=owners[0]))
            continue

        exact = [w for w in needed_by if w.selector == pdb.selector]
        if len(exact) != 1:
            continue

        workload = exact[0]
        wanted = desired_min_available(workload)
        if pdb.min_available != wanted or pdb.max_unavailable is not None:
            updated = DisruptionBudget(
                namespace=pdb.namespace or snapshot.namespace,
                name=pdb.name,
                selector=dict(pdb.selector),
                labels=dict(pdb.labels),
                min_available=wanted,
            )
            plan.updates.append(PDBAction(pdb=updated, reason=REASON_REPLICAS_CHANGED, workload=workload))

    created_names = {action.pdb.name for action in plan.creates}
    plan.replaces = [a for a in plan.deletes if a.pdb.name in created_names]
    plan.deletes = [a for a in plan.deletes if a.pdb.name not in created_names]

    return plan


def build_pdb_body(action: PDBAction) -> client.V1PodDisruptionBudget:
    """
    Create the PodDisruptionBudget object for a planned create.

    Args:
        action: Create action holding the desired PDB and its workload

    Returns:
        New V1PodDisruptionBudget
    """
    pdb = action.pdb
    workload = action.workload
    owner_references = None

    if workload is not None and workload.uid:
        owner_references = [
            client.V1OwnerReference(
                api_version=workload.api_version,
                kind=workload.kind,
                name=workload.name,
                uid=workload.uid,
            )
        ]

    return client.V1PodDisruptionBudget(
        api_version="policy/v1",
        kind="PodDisruptionBudget",
        metadata=client.V1ObjectMeta(
            name=pdb.name,
            namespace=pdb.namespace,
            labels=dict(pdb.labels),
            owner_references=owner_references,
        ),
        spec=client.V1PodDisruptionBudgetSpec(
            min_available=pdb.min_available,
            selector=client.V1LabelSelector(match_labels=dict(pdb.selector)),
        ),
    )


def build_patch_body(action: PDBAction) -> Dict[str, Any]:
    """Merge patch setting minAvailable and clearing maxUnavailable."""
    return {
        "spec": {
            "minAvailable": action.pdb.min_available,
            "maxUnavailable": None,
        }
    }


class PDBReconciler:
    """Reconciles the managed PDBs of a namespace against its workloads."""

    def __init__(self, cluster, config: ControllerConfig):
        """
        Initialize the reconciler.

        Args:
            cluster: ClusterClient (or any object with the same methods)
            config: Controller configuration
        """
        self.cluster = cluster
        self.config = config

    def reconcile_namespace(self, namespace: str, now: Optional[datetime] = None) -> NamespaceResult:
        """
        Reconcile one namespace from a fresh snapshot.

        Args:
            namespace: Namespace to reconcile
            now: Reference time for readiness checks

        Returns:
            NamespaceResult; API failures are recorded, not raised
        """
        result = NamespaceResult(namespace=namespace)

        try:
            snapshot = NamespaceSnapshot.load(self.cluster, namespace)
        except ApiException as e:
            logger.error(f"Error reading namespace {namespace}: {e}")
            result.errors.append(f"listing objects: {e.status} {e.reason}")
            return result

        plan = plan_namespace(snapshot, self.config, now)
        if plan.empty:
            logger.debug(f"Namespace {namespace} is in sync")
            return result

        self.apply_plan(plan, result)
        return result

    def apply_plan(self, plan: NamespacePlan, result: NamespaceResult) -> None:
        """Issue the plan's creates, then updates, then deletes.

        A create whose name is held by a PDB the plan removes is preceded by
        that one delete.
        """
        namespace = plan.namespace

        if self.config.dry_run:
            for action in plan.replaces:
                logger.info(f"[DRY-RUN] Would replace PDB {namespace}/{action.pdb.name} ({action.reason})")
            for action in plan.creates:
                logger.info(f"[DRY-RUN] Would create PDB {namespace}/{action.pdb.name} ({action.reason})")
            for action in plan.updates:
                logger.info(f"[DRY-RUN] Would update PDB {namespace}/{action.pdb.name} ({action.reason})")
            for action in plan.deletes:
                logger.info(f"[DRY-RUN] Would delete PDB {namespace}/{action.pdb.name} ({action.reason})")
            return

        replaced = {action.pdb.name: action for action in plan.replaces}
        for action in plan.creates:
            if action.pdb.name in replaced:
                self._delete(namespace, replaced[action.pdb.name], result)
            self._create(namespace, action, result)

        for action in plan.updates:
            self._update(namespace, action, result)

        for action in plan.deletes:
            self._delete(namespace, action, result)

    def _create(self, namespace: str, action: PDBAction, result: NamespaceResult) -> None:
        name = action.pdb.name
        try:
            if self.cluster.create_pdb(namespace, build_pdb_body(action)):
                logger.info(
                    f"Created PDB {namespace}/{name} for {action.workload.key} "
                    f"(minAvailable={action.pdb.min_available})"
                )
                result.created.append(name)
        except ApiException as e:
            logger.error(f"Error creating PDB {namespace}/{name}: {e}")
            result.errors.append(f"create {name}: {e.status} {e.reason}")

    def _update(self, namespace: str, action: PDBAction, result: NamespaceResult) -> None:
        name = action.pdb.name
        try:
            if self.cluster.patch_pdb(namespace, name, build_patch_body(action)):
                logger.info(f"Updated PDB {namespace}/{name} to minAvailable={action.pdb.min_available}")
                result.updated.append(name)
        except ApiException as e:
            logger.error(f"Error updating PDB {namespace}/{name}: {e}")
            result.errors.append(f"update {name}: {e.status} {e.reason}")

    def _delete(self, namespace: str, action: PDBAction, result: NamespaceResult) -> None:
        name = action.pdb.name
        try:
            # Re-check the marker in case the PDB was replaced since the snapshot
            current = self.cluster.get_pdb(namespace, name)
            if current is None:
                return
            if not contain_labels(current.metadata.labels, self.config.owner_labels):
                logger.warning(f"PDB {namespace}/{name} is no longer managed, leaving it alone")
                return

            if self.cluster.delete_pdb(namespace, name):
                logger.info(f"Deleted PDB {namespace}/{name} ({action.reason})")
                result.deleted.append(name)
        except ApiException as e:
            logger.error(f"Error deleting PDB {namespace}/{name}: {e}")
            result.errors.append(f"delete {name}: {e.status} {e.reason}")
