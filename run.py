#!/usr/bin/env python3
"""
PDB Controller - Entry Point

Keeps PodDisruptionBudgets in sync with Deployments and StatefulSets, and
drops protection for workloads whose pods have been unready for too long.

Usage:
    python run.py [--namespace NAMESPACE] [--interval SECONDS] [--non-ready-ttl 1h] [--dry-run] [--in-cluster]
"""

import argparse
import logging
import os
import signal
import sys

from kubernetes import config

from pdb_controller.cluster_client import ClusterClient
from pdb_controller.config import (
    DEFAULT_NON_READY_TTL,
    NON_READY_TTL_ANNOTATION,
    OWNER_LABEL_KEY,
    OWNER_LABEL_VALUE,
    PDB_NAME_SUFFIX,
    SYNC_INTERVAL_SECONDS,
    ControllerConfig,
)
from pdb_controller.controller import PDBController
from pdb_controller.utils import parse_duration

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)

ENV_PREFIX = "PDB_CONTROLLER_"


def env(name: str, default):
    return os.environ.get(ENV_PREFIX + name, default)


def parse_owner_label(value: str):
    key, sep, label_value = value.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"expected KEY=VALUE, got {value!r}")
    return {key: label_value}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="PDB Controller - Keep PodDisruptionBudgets in sync with workloads"
    )
    parser.add_argument(
        "--namespace", "-n",
        default=env("NAMESPACE", ""),
        help="Namespace to reconcile (default: all namespaces)"
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=env("INTERVAL", str(SYNC_INTERVAL_SECONDS)),
        help=f"Seconds between passes (default: {SYNC_INTERVAL_SECONDS})"
    )
    parser.add_argument(
        "--non-ready-ttl",
        default=env("NON_READY_TTL", DEFAULT_NON_READY_TTL),
        help="Remove the PDB of workloads whose pods are all unready this long, e.g. 1h (default: disabled)"
    )
    parser.add_argument(
        "--ttl-annotation",
        default=env("TTL_ANNOTATION", NON_READY_TTL_ANNOTATION),
        help=f"Workload annotation overriding the non-ready TTL (default: {NON_READY_TTL_ANNOTATION})"
    )
    parser.add_argument(
        "--owner-label",
        type=parse_owner_label,
        default=env("OWNER_LABEL", f"{OWNER_LABEL_KEY}={OWNER_LABEL_VALUE}"),
        help=f"KEY=VALUE label marking managed PDBs (default: {OWNER_LABEL_KEY}={OWNER_LABEL_VALUE})"
    )
    parser.add_argument(
        "--pdb-name-suffix",
        default=env("PDB_NAME_SUFFIX", PDB_NAME_SUFFIX),
        help=f"Suffix of managed PDB names (default: {PDB_NAME_SUFFIX})"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=env("DRY_RUN", "").lower() in ("1", "true", "yes"),
        help="Run in dry-run mode (no changes made)"
    )
    parser.add_argument(
        "--in-cluster",
        action="store_true",
        help="Use in-cluster config (for running inside Kubernetes)"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose/debug logging"
    )
    return parser


def build_config(args: argparse.Namespace) -> ControllerConfig:
    """Create the ControllerConfig from parsed arguments."""
    return ControllerConfig(
        owner_labels=args.owner_label,
        non_ready_ttl=parse_duration(args.non_ready_ttl),
        ttl_annotation=args.ttl_annotation,
        pdb_name_suffix=args.pdb_name_suffix,
        interval=args.interval,
        namespace=args.namespace,
        dry_run=args.dry_run,
    )


def main():
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args()

    # Set log level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        controller_config = build_config(args)
    except ValueError as e:
        parser.error(str(e))

    # Load Kubernetes configuration
    try:
        if args.in_cluster:
            config.load_incluster_config()
            logger.info("Loaded in-cluster configuration")
        else:
            config.load_kube_config()
            logger.info("Loaded kubeconfig from default location")
    except Exception as e:
        logger.error(f"Failed to load Kubernetes config: {e}")
        sys.exit(1)

    controller = PDBController(ClusterClient(), controller_config)

    def handle_sigterm(signum, frame):
        logger.info("Received SIGTERM, shutting down...")
        controller.stop()

    signal.signal(signal.SIGTERM, handle_sigterm)

    try:
        controller.run()
    except KeyboardInterrupt:
        controller.stop()
        logger.info("Controller stopped")
        sys.exit(0)


if __name__ == "__main__":
    main()
