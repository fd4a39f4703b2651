"""Configuration settings for the PDB Controller."""

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Dict

from .utils import parse_duration

# Label stamped on every PDB this controller creates
OWNER_LABEL_KEY = "heritage"
OWNER_LABEL_VALUE = "pdb-controller"

# Workload annotation overriding the non-ready TTL, e.g. "15m"
NON_READY_TTL_ANNOTATION = "pdb-controller/non-ready-ttl"

# Default non-ready TTL ("0s" disables the check unless a workload overrides it)
DEFAULT_NON_READY_TTL = "0s"

# Managed PDBs are named "<workload>-<suffix>"
PDB_NAME_SUFFIX = "pdb-controller"

# Loop settings
SYNC_INTERVAL_SECONDS = 60

# Workloads need at least this many replicas to be protected
MIN_PROTECTED_REPLICAS = 2


@dataclass
class ControllerConfig:
    """Settings threaded through the reconciler and the loop."""
    owner_labels: Dict[str, str] = field(
        default_factory=lambda: {OWNER_LABEL_KEY: OWNER_LABEL_VALUE}
    )
    non_ready_ttl: timedelta = parse_duration(DEFAULT_NON_READY_TTL)
    ttl_annotation: str = NON_READY_TTL_ANNOTATION
    pdb_name_suffix: str = PDB_NAME_SUFFIX
    interval: float = SYNC_INTERVAL_SECONDS
    namespace: str = ""
    dry_run: bool = False

    def __post_init__(self):
        if not self.owner_labels:
            raise ValueError("owner_labels must not be empty")
        if self.interval <= 0:
            raise ValueError("interval must be positive")
        if self.non_ready_ttl < timedelta(0):
            raise ValueError("non_ready_ttl must not be negative")

    def pdb_name(self, workload_name: str) -> str:
        """Name of the managed PDB protecting the given workload."""
        return f"{workload_name}-{self.pdb_name_suffix}"
