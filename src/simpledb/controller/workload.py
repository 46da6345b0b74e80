"""Workload descriptors and the desired-workload builder."""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from simpledb.models.simpledb import KIND, NamespacedName

APP_LABEL = "simpledb"
CONTAINER_NAME = "simpledb"
DB_PORT_NAME = "db"
DB_PORT = 5432
# Demo credential; a real deployment must source this from a Secret.
DEFAULT_PASSWORD = "changeme"


class ContainerPort(BaseModel):
    name: str
    containerPort: int


class EnvVar(BaseModel):
    name: str
    value: str


class ContainerSpec(BaseModel):
    name: str = CONTAINER_NAME
    image: str
    ports: List[ContainerPort] = Field(default_factory=list)
    env: List[EnvVar] = Field(default_factory=list)


class WorkloadStatus(BaseModel):
    """Replica counters observed by the workload backend."""

    updatedReplicas: int = 0
    readyReplicas: int = 0
    availableReplicas: int = 0


class OwnerReference(BaseModel):
    apiVersion: str
    kind: str
    name: str
    uid: Optional[str] = None
    controller: bool = True
    blockOwnerDeletion: bool = True


class WorkloadDescriptor(BaseModel):
    """What a SimpleDB's Deployment looks like, or should look like."""

    name: str
    namespace: str
    replicas: int
    labels: Dict[str, str] = Field(default_factory=dict)
    container: ContainerSpec
    status: WorkloadStatus = Field(default_factory=WorkloadStatus)
    owner: Optional[OwnerReference] = None

    @property
    def ref(self):
        return NamespacedName(self.namespace, self.name)


def labels_for(name):
    """Selector labels shared by a SimpleDB's Deployment and its pods."""
    return {"app": APP_LABEL, "owner": name}


def build_desired_workload(db) -> WorkloadDescriptor:
    """Build the workload a SimpleDB should have.

    Pure: the result depends only on ``db``. The Deployment shares the
    SimpleDB's name and namespace and carries a controller owner reference
    back to it so the garbage collector removes it with its owner.
    """
    ref = db.ref
    return WorkloadDescriptor(
        name=ref.name,
        namespace=ref.namespace,
        replicas=db.spec.replicas,
        labels=labels_for(ref.name),
        container=ContainerSpec(
            image=db.spec.image,
            ports=[ContainerPort(name=DB_PORT_NAME, containerPort=DB_PORT)],
            env=[
                EnvVar(name="POSTGRES_PASSWORD", value=DEFAULT_PASSWORD),
                EnvVar(name="POSTGRES_DB", value=db.spec.dbName),
            ],
        ),
        owner=OwnerReference(
            apiVersion=db.api_version,
            kind=KIND,
            name=ref.name,
            uid=db.metadata.uid,
        ),
    )
