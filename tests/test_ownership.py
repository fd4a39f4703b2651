"""Unit tests for the ownership resolver."""

from factories import OWNER_LABELS
from pdb_controller.ownership import (
    is_managed,
    overlapping_workloads,
    owners_of,
    partition_pdbs,
    resolve_ownership,
)
from pdb_controller.resources import DEPLOYMENT, DisruptionBudget, Workload


def pdb(name, selector, owned=True):
    return DisruptionBudget(
        namespace="default",
        name=name,
        selector=selector,
        labels=dict(OWNER_LABELS) if owned else {},
    )


def workload(name, labels, replicas=2):
    return Workload(
        namespace="default",
        name=name,
        kind=DEPLOYMENT,
        selector=dict(labels),
        desired_replicas=replicas,
        pod_template_labels=dict(labels),
    )


class TestResolveOwnership:
    """Tests for resolve_ownership."""

    def test_matches_without_marker(self) -> None:
        labels = {"k": "v"}
        pdbs = [pdb("managed", labels), pdb("user", labels, owned=False)]

        matched = resolve_ownership(labels, pdbs)

        assert [p.name for p in matched] == ["managed", "user"]

    def test_marker_restricts_to_managed(self) -> None:
        labels = {"k": "v"}
        pdbs = [pdb("managed", labels), pdb("user", labels, owned=False)]

        matched = resolve_ownership(labels, pdbs, OWNER_LABELS)

        assert [p.name for p in matched] == ["managed"]

    def test_selector_must_be_contained_in_labels(self) -> None:
        pdbs = [pdb("wide", {"app": "web"}), pdb("narrow", {"app": "web", "tier": "db"})]

        matched = resolve_ownership({"app": "web", "tier": "frontend"}, pdbs)

        assert [p.name for p in matched] == ["wide"]

    def test_no_labels_match_nothing(self) -> None:
        assert resolve_ownership({}, [pdb("p", {"k": "v"})], OWNER_LABELS) == []
        assert resolve_ownership(None, [pdb("p", {"k": "v"})]) == []

    def test_empty_pdb_selector_never_matches(self) -> None:
        assert resolve_ownership({"app": "web"}, [pdb("everything", {})]) == []


class TestPartition:
    """Tests for managed/user partitioning."""

    def test_partition_by_marker(self) -> None:
        managed = pdb("managed", {"a": "b"})
        user = pdb("user", {"a": "b"}, owned=False)
        other = DisruptionBudget(
            namespace="default", name="other", selector={"a": "b"},
            labels={"heritage": "someone-else"},
        )

        assert partition_pdbs([managed, user, other], OWNER_LABELS) == ([managed], [user, other])

    def test_empty_marker_owns_nothing(self) -> None:
        assert not is_managed(pdb("p", {"a": "b"}), {})


class TestOwners:
    """Tests for owners_of and overlapping_workloads."""

    def test_owners_of(self) -> None:
        web = workload("web", {"app": "web"})
        db = workload("db", {"app": "db"})

        assert owners_of(pdb("p", {"app": "web"}), [web, db]) == [web]
        assert owners_of(pdb("p", {"app": "gone"}), [web, db]) == []
        assert owners_of(pdb("p", {}), [web, db]) == []

    def test_overlapping_workloads(self) -> None:
        web = workload("web", {"app": "web", "tier": "frontend"})
        api = workload("api", {"app": "web", "tier": "backend"})

        overlapping = overlapping_workloads(pdb("p", {"app": "web", "tier": "frontend"}), [web, api])

        assert overlapping == [api]
