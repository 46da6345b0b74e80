"""Cluster-facing services for the simpledb operator."""

from . import kubernetes_backend

__all__ = ["kubernetes_backend"]
