"""Client for the cluster objects the PDB controller reads and writes."""

import logging
from typing import Any, Dict, List, Optional

from kubernetes import client
from kubernetes.client.rest import ApiException

logger = logging.getLogger(__name__)

NOT_FOUND = 404
ALREADY_EXISTS = 409


class ClusterClient:
    """
    Namespace scoped access to Namespaces, workloads, Pods and PDBs.

    Listing and mutation errors other than the benign races below are
    raised as ApiException for the caller to attribute to a namespace.
    """

    def __init__(self, api_client: Optional[client.ApiClient] = None):
        """
        Initialize the API clients.

        Args:
            api_client: Shared ApiClient (defaults to the loaded kube config)
        """
        self.core_api = client.CoreV1Api(api_client)
        self.apps_api = client.AppsV1Api(api_client)
        self.policy_api = client.PolicyV1Api(api_client)

    def list_namespaces(self) -> List[str]:
        response = self.core_api.list_namespace()
        return [ns.metadata.name for ns in response.items]

    def list_deployments(self, namespace: str) -> List[Any]:
        return self.apps_api.list_namespaced_deployment(namespace=namespace).items

    def list_stateful_sets(self, namespace: str) -> List[Any]:
        return self.apps_api.list_namespaced_stateful_set(namespace=namespace).items

    def list_pods(self, namespace: str) -> List[Any]:
        return self.core_api.list_namespaced_pod(namespace=namespace).items

    def list_pdbs(self, namespace: str) -> List[Any]:
        return self.policy_api.list_namespaced_pod_disruption_budget(namespace=namespace).items

    def get_pdb(self, namespace: str, name: str) -> Optional[Any]:
        """
        Get a PodDisruptionBudget.

        Returns:
            The PDB object or None if not found
        """
        try:
            return self.policy_api.read_namespaced_pod_disruption_budget(
                name=name,
                namespace=namespace
            )
        except ApiException as e:
            if e.status == NOT_FOUND:
                return None
            raise

    def create_pdb(self, namespace: str, body: client.V1PodDisruptionBudget) -> bool:
        """
        Create a PodDisruptionBudget.

        Returns:
            True if created, False if a PDB with that name already exists
        """
        try:
            self.policy_api.create_namespaced_pod_disruption_budget(
                namespace=namespace,
                body=body
            )
            return True
        except ApiException as e:
            if e.status == ALREADY_EXISTS:
                logger.debug(f"PDB {namespace}/{body.metadata.name} already exists")
                return False
            raise

    def patch_pdb(self, namespace: str, name: str, body: Dict[str, Any]) -> bool:
        """
        Patch a PodDisruptionBudget.

        Returns:
            True if patched, False if the PDB no longer exists
        """
        try:
            self.policy_api.patch_namespaced_pod_disruption_budget(
                name=name,
                namespace=namespace,
                body=body
            )
            return True
        except ApiException as e:
            if e.status == NOT_FOUND:
                logger.debug(f"PDB {namespace}/{name} vanished before patch")
                return False
            raise

    def delete_pdb(self, namespace: str, name: str) -> bool:
        """
        Delete a PodDisruptionBudget.

        Returns:
            True if deleted, False if it was already gone
        """
        try:
            self.policy_api.delete_namespaced_pod_disruption_budget(
                name=name,
                namespace=namespace
            )
            return True
        except ApiException as e:
            if e.status == NOT_FOUND:
                logger.debug(f"PDB {namespace}/{name} already deleted")
                return False
            raise
