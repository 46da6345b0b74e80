"""Pydantic models for all CRDs."""

# Import all models to ensure they're registered
from . import simpledb

__all__ = ["simpledb"]
