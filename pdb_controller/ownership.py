"""Resolve which PodDisruptionBudgets protect which workloads."""

from typing import Dict, List, Optional, Sequence, Tuple

from .resources import DisruptionBudget, Workload
from .utils import contain_labels, is_valid_selector, labels_intersect


def is_managed(pdb: DisruptionBudget, ownership_marker: Dict[str, str]) -> bool:
    """Check whether the PDB carries the controller's ownership marker."""
    return bool(ownership_marker) and contain_labels(pdb.labels, ownership_marker)


def partition_pdbs(
    pdbs: Sequence[DisruptionBudget],
    ownership_marker: Dict[str, str]
) -> Tuple[List[DisruptionBudget], List[DisruptionBudget]]:
    """
    Split PDBs into (managed, user) by the ownership marker.

    Returns:
        Tuple of (managed, user) lists, each in input order
    """
    managed, user = [], []
    for pdb in pdbs:
        (managed if is_managed(pdb, ownership_marker) else user).append(pdb)
    return managed, user


def resolve_ownership(
    pod_template_labels: Dict[str, str],
    pdbs: Sequence[DisruptionBudget],
    ownership_marker: Optional[Dict[str, str]] = None
) -> List[DisruptionBudget]:
    """
    Find the PDBs whose selector selects the given pod template labels.

    PDBs with an empty selector are never returned. With an ownership
    marker only managed PDBs are returned, without one every match is.

    Args:
        pod_template_labels: Labels of the workload's pod template
        pdbs: All PDBs of the namespace
        ownership_marker: Labels identifying managed PDBs

    Returns:
        Matching PDBs in input order
    """
    if not pod_template_labels:
        return []

    matches = []
    for pdb in pdbs:
        if not is_valid_selector(pdb.selector):
            continue
        if not contain_labels(pod_template_labels, pdb.selector):
            continue
        if ownership_marker and not contain_labels(pdb.labels, ownership_marker):
            continue
        matches.append(pdb)
    return matches


def owners_of(pdb: DisruptionBudget, workloads: Sequence[Workload]) -> List[Workload]:
    """Workloads whose pods the PDB selects."""
    if not is_valid_selector(pdb.selector):
        return []
    return [w for w in workloads if contain_labels(w.pod_template_labels, pdb.selector)]


def overlapping_workloads(pdb: DisruptionBudget, workloads: Sequence[Workload]) -> List[Workload]:
    """Workloads that share some selector labels with the PDB without being selected by it."""
    return [
        w for w in workloads
        if labels_intersect(w.pod_template_labels, pdb.selector)
        and not contain_labels(w.pod_template_labels, pdb.selector)
    ]
