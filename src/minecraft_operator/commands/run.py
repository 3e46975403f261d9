from functools import partial
from pathlib import Path

from kubernetes.client.api_client import ApiClient
from kubernetes.config.incluster_config import load_incluster_config
from kubernetes.config.kube_config import list_kube_config_contexts, load_kube_config
from kubernetes.dynamic import DynamicClient
from loguru import logger
from typer import Option

from minecraft_operator.client import ROUTE, DynamicResourceClient, has_resource_kind
from minecraft_operator.config import OperatorConfig
from minecraft_operator.controller import MinecraftController
from minecraft_operator.watcher import Watcher
from . import app

SERVICE_ACCOUNT_NAMESPACE_FILE = Path("/var/run/secrets/kubernetes.io/serviceaccount/namespace")


@app.command()
def run(
    namespace: str | None = Option(None, envvar="NAMESPACE", help="The namespace to watch for Minecraft resources."),
    in_cluster: bool = Option(
        False, envvar="IN_CLUSTER", help="Use the in-cluster Kubernetes configuration instead of the Kubeconfig."
    ),
    openshift: bool | None = Option(
        None,
        "--openshift/--no-openshift",
        envvar="OPENSHIFT",
        help="Manage OpenShift routes. Detected from the cluster's APIs if not specified.",
    ),
    resync_seconds: int | None = Option(
        None, envvar="RESYNC_SECONDS", help="Interval in seconds after which all resources are reconciled again."
    ),
    config_file: Path | None = Option(None, "--config", help="The operator configuration file."),
) -> None:
    """
    Run the operator until it is interrupted.
    """

    config = OperatorConfig.load(config_file)

    if in_cluster:
        logger.info("Using in-cluster configuration.")
        load_incluster_config()
    else:
        load_kube_config()

    namespace = namespace or config.namespace or _default_namespace(in_cluster)

    client = DynamicClient(ApiClient())

    if openshift is None:
        openshift = config.openshift
    if openshift is None:
        openshift = has_resource_kind(client, ROUTE)
        logger.info("OpenShift routes {}", "detected" if openshift else "not detected")

    controller = MinecraftController(partial(DynamicResourceClient, client), has_openshift=openshift)
    watcher = Watcher(client, controller, namespace, resync_seconds or config.resync_seconds)

    try:
        watcher.run()
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down.")


def _default_namespace(in_cluster: bool) -> str:
    if in_cluster:
        return SERVICE_ACCOUNT_NAMESPACE_FILE.read_text().strip()
    _, active = list_kube_config_contexts()
    return active["context"].get("namespace", "default")
