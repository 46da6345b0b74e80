"""Handler modules for the simpledb operator."""

# Import handlers so kopf registers them
from . import simpledb_handler

__all__ = ["simpledb_handler"]
