import kopf
import logging
import kubernetes
import os

from simpledb import config
from simpledb.crd.generator import SimpleDBCRDManager

logging.basicConfig(
    level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Importing the handlers registers them with kopf
from simpledb import handlers  # noqa: E402,F401


def load_kube_config():
    """Load in-cluster config, falling back to the local kubeconfig."""
    try:
        kubernetes.config.load_incluster_config()
        logger.info("Loaded in-cluster Kubernetes config")
    except kubernetes.config.ConfigException:
        kubernetes.config.load_kube_config()
        logger.info("Loaded local Kubernetes config")


@kopf.on.startup()
def startup_fn(settings: kopf.OperatorSettings, **kwargs):
    """Configure the operator."""
    logger.info("SimpleDB Operator is starting up...")

    load_kube_config()

    if config.should_manage_crds():
        crd_manager = SimpleDBCRDManager()
        memory_only = not config.should_generate_crd_files()

        if memory_only:
            logger.info("Applying CRDs in memory-only mode (no YAML files)")
        else:
            logger.info("Generating CRD files and applying to cluster")
            crd_manager.generate_all_crds(force=True)

        if crd_manager.apply_crds_to_cluster():
            logger.info("CRDs applied to cluster successfully")
        else:
            logger.warning("No CRDs were applied to cluster")

    settings.batching.worker_limit = config.worker_limit()
    settings.posting.enabled = config.posting_enabled()
    settings.watching.server_timeout = config.server_timeout()
    # Keep kopf's bookkeeping out of .status, which the reconciler owns
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage(
        prefix="simpledb.database.my.domain"
    )

    logger.info(f"Worker limit: {settings.batching.worker_limit}")
    logger.info(f"Posting enabled: {settings.posting.enabled}")
    logger.info("SimpleDB Operator startup complete")


@kopf.on.cleanup()
def cleanup_fn(**kwargs):
    logger.info("SimpleDB Operator shutdown complete")


def main():
    try:
        namespace = config.watch_namespace()
        kopf.run(clusterwide=not namespace, namespaces=[namespace] if namespace else [])
    except KeyboardInterrupt:
        logger.info("Operator stopped by user")
    except Exception as e:
        logger.error(f"Operator failed: {e}")
        raise


if __name__ == "__main__":
    main()
