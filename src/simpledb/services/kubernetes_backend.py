""" Kubernetes backend for reading SimpleDBs and managing their Deployments.
"""

import logging

import kubernetes
from kubernetes.client.exceptions import ApiException

from simpledb.controller.reconciler import WorkloadBackend
from simpledb.controller.workload import (
    ContainerPort,
    ContainerSpec,
    EnvVar,
    OwnerReference,
    WorkloadDescriptor,
    WorkloadStatus,
)
from simpledb.models.simpledb import GROUP, PLURAL, VERSION, SimpleDB

logger = logging.getLogger(__name__)


def deployment_to_workload(deployment):
    """ Convert a V1Deployment into a WorkloadDescriptor.

    Args:
        deployment: kubernetes.client.V1Deployment read from the cluster
    """
    spec = deployment.spec
    containers = spec.template.spec.containers if spec.template.spec else []
    if containers:
        container = ContainerSpec(
            name=containers[0].name,
            image=containers[0].image or "",
            ports=[
                ContainerPort(name=p.name or "", containerPort=p.container_port)
                for p in containers[0].ports or []
            ],
            env=[
                EnvVar(name=e.name, value=e.value or "")
                for e in containers[0].env or []
            ],
        )
    else:
        container = ContainerSpec(name="", image="")

    observed = WorkloadStatus()
    if deployment.status:
        observed = WorkloadStatus(
            updatedReplicas=deployment.status.updated_replicas or 0,
            readyReplicas=deployment.status.ready_replicas or 0,
            availableReplicas=deployment.status.available_replicas or 0,
        )

    owners = deployment.metadata.owner_references or []
    controller = next((o for o in owners if o.controller), None)

    return WorkloadDescriptor(
        name=deployment.metadata.name,
        namespace=deployment.metadata.namespace,
        # API server defaulting makes an unset count mean 1
        replicas=spec.replicas if spec.replicas is not None else 1,
        labels=dict(spec.selector.match_labels or {}) if spec.selector else {},
        container=container,
        status=observed,
        owner=OwnerReference(
            apiVersion=controller.api_version,
            kind=controller.kind,
            name=controller.name,
            uid=controller.uid,
            controller=True,
            blockOwnerDeletion=bool(controller.block_owner_deletion),
        )
        if controller
        else None,
    )


def workload_to_deployment(workload):
    """ Render a WorkloadDescriptor as a V1Deployment body.

    Args:
        workload: WorkloadDescriptor to render
    """
    owner_references = None
    if workload.owner:
        owner_references = [
            kubernetes.client.V1OwnerReference(
                api_version=workload.owner.apiVersion,
                kind=workload.owner.kind,
                name=workload.owner.name,
                uid=workload.owner.uid,
                controller=workload.owner.controller,
                block_owner_deletion=workload.owner.blockOwnerDeletion,
            )
        ]

    container = kubernetes.client.V1Container(
        name=workload.container.name,
        image=workload.container.image,
        ports=[
            kubernetes.client.V1ContainerPort(name=p.name, container_port=p.containerPort)
            for p in workload.container.ports
        ],
        env=[
            kubernetes.client.V1EnvVar(name=e.name, value=e.value)
            for e in workload.container.env
        ],
    )

    return kubernetes.client.V1Deployment(
        api_version="apps/v1",
        kind="Deployment",
        metadata=kubernetes.client.V1ObjectMeta(
            name=workload.name,
            namespace=workload.namespace,
            labels=dict(workload.labels),
            owner_references=owner_references,
        ),
        spec=kubernetes.client.V1DeploymentSpec(
            replicas=workload.replicas,
            selector=kubernetes.client.V1LabelSelector(match_labels=dict(workload.labels)),
            template=kubernetes.client.V1PodTemplateSpec(
                metadata=kubernetes.client.V1ObjectMeta(labels=dict(workload.labels)),
                spec=kubernetes.client.V1PodSpec(containers=[container]),
            ),
        ),
    )


class KubernetesBackend(WorkloadBackend):
    """ SimpleDBs through the custom objects API, workloads as apps/v1 Deployments.
    """

    def get_desired_state(self, ref):
        api = kubernetes.client.CustomObjectsApi()
        try:
            body = api.get_namespaced_custom_object(
                group=GROUP,
                version=VERSION,
                namespace=ref.namespace,
                plural=PLURAL,
                name=ref.name,
            )
        except ApiException as e:
            if e.status == 404:
                return None
            logger.error(f"Failed to read SimpleDB {ref}: {e}")
            raise
        return SimpleDB.from_body(body)

    def get_workload(self, ref):
        api = kubernetes.client.AppsV1Api()
        try:
            deployment = api.read_namespaced_deployment(name=ref.name, namespace=ref.namespace)
        except ApiException as e:
            if e.status == 404:
                return None
            logger.error(f"Failed to read Deployment {ref}: {e}")
            raise
        return deployment_to_workload(deployment)

    def create_workload(self, workload):
        api = kubernetes.client.AppsV1Api()
        api.create_namespaced_deployment(
            namespace=workload.namespace, body=workload_to_deployment(workload)
        )
        logger.info(f"Created Deployment: {workload.ref}")

    def update_workload(self, workload):
        api = kubernetes.client.AppsV1Api()
        api.patch_namespaced_deployment(
            name=workload.name,
            namespace=workload.namespace,
            body={"spec": {"replicas": workload.replicas}},
        )
        logger.info(f"Patched Deployment {workload.ref} to {workload.replicas} replicas")

    def write_status(self, ref, conditions):
        api = kubernetes.client.CustomObjectsApi()
        api.patch_namespaced_custom_object_status(
            group=GROUP,
            version=VERSION,
            namespace=ref.namespace,
            plural=PLURAL,
            name=ref.name,
            body={
                "status": {
                    "conditions": [c.model_dump(mode="json") for c in conditions]
                }
            },
        )
        logger.info(f"Updated status of SimpleDB {ref}")
