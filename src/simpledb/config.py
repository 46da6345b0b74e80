"""Operator configuration read from the environment."""

import os


def should_manage_crds() -> bool:
    """Determine if operator should manage CRDs directly."""
    return os.getenv("MANAGE_CRDS", "true").lower() == "true"


def should_generate_crd_files() -> bool:
    """Determine if operator should generate CRD YAML files."""
    return os.getenv("GENERATE_CRD_FILES", "false").lower() == "true"


def worker_limit() -> int:
    return int(os.getenv("WORKER_LIMIT", "5"))


def posting_enabled() -> bool:
    return os.getenv("POSTING_ENABLED", "false").lower() == "true"


def server_timeout() -> int:
    return int(os.getenv("SERVER_TIMEOUT", "60"))


def requeue_delay() -> float:
    """Seconds before re-running a pass that changed the workload."""
    return float(os.getenv("REQUEUE_DELAY", "1"))


def resync_interval() -> float:
    """Seconds between periodic passes over every SimpleDB."""
    return float(os.getenv("RESYNC_INTERVAL", "60"))


def watch_namespace():
    """Namespace to watch; unset means every namespace."""
    return os.getenv("WATCH_NAMESPACE") or None
