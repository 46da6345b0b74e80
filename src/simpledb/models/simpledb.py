"""SimpleDB CRD model."""

from typing import NamedTuple

from pydantic import BaseModel, Field

from simpledb.crd.base import CRDMetadata, CRDSpec, CRDStatus
from simpledb.crd.registry import CRDRegistry

GROUP = "database.my.domain"
VERSION = "v1"
KIND = "SimpleDB"
PLURAL = "simpledbs"


class NamespacedName(NamedTuple):
    """Identity of a namespaced object."""

    namespace: str
    name: str

    def __str__(self):
        return f"{self.namespace}/{self.name}"


@CRDRegistry.register(GROUP, VERSION, KIND, PLURAL)
class SimpleDBSpec(CRDSpec):
    """Desired state of a SimpleDB."""

    # The minimum is enforced by the API server schema; the reconciler
    # re-checks it instead of failing to parse.
    replicas: int = Field(
        ...,
        description="Number of DB instances wanted",
        json_schema_extra={"minimum": 1},
    )
    image: str = Field(
        ..., description="Container image to run (e.g., postgres:14)"
    )
    dbName: str = Field(..., description="Name of the internal database")


class SimpleDBStatus(CRDStatus):
    """Observed state of a SimpleDB."""


class SimpleDB(BaseModel):
    """A SimpleDB object as read from the API server."""

    metadata: CRDMetadata
    spec: SimpleDBSpec
    status: SimpleDBStatus = Field(default_factory=SimpleDBStatus)

    @classmethod
    def from_body(cls, body):
        """Parse a raw API object (dict) into a SimpleDB.

        Only the fields this operator owns are kept; anything else under
        ``spec`` is rejected by the spec model.
        """
        return cls(
            metadata=body["metadata"],
            spec=body["spec"],
            status=body.get("status") or {},
        )

    @property
    def ref(self):
        return NamespacedName(self.metadata.namespace or "default", self.metadata.name)

    @property
    def api_version(self):
        return f"{GROUP}/{VERSION}"
