"""
The desired state of every object the operator manages for a `Minecraft` resource.

Each function in this module takes the current state of an object (or a fresh object that only has its name and
namespace set), the `Minecraft` resource and the names of all objects, and returns the object with the fields the
operator owns set to their desired values. Fields that are not owned by the operator are left untouched, so applying a
function to its own result yields an equal object.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from minecraft_operator.config import (
    DOWNLOAD_IMAGE,
    KUBERNETES_LABEL_COMPONENT,
    KUBERNETES_LABEL_INSTANCE,
    KUBERNETES_LABEL_NAME,
    SERVER_IMAGE,
    SERVER_JAR_URL,
    SERVER_PORT,
    SERVING_CERT_ANNOTATION,
    TLS_PORT,
    TLS_PORT_NAME,
)
from minecraft_operator.ownership import owned_by_controller
from minecraft_operator.resources.minecraft import Minecraft
from minecraft_operator.tools.mutate import apply_named, set_resources, use_or_create
from minecraft_operator.tools.types import Manifest

DOWNLOAD_SCRIPT = f"""
mkdir -p /data/server
test -f /data/server/server.jar || curl {SERVER_JAR_URL} -Ls -o /data/server/server.jar
echo "eula=true" > /data/eula.txt
"""


@dataclass(frozen=True)
class ResourceNames:
    """
    The names of the objects managed for a `Minecraft` resource. They only depend on the name of the resource.
    """

    service_account: str
    pvc: str
    deployment: str
    service: str
    route: str
    tls_secret: str

    @staticmethod
    def of(minecraft: Minecraft) -> "ResourceNames":
        prefix = minecraft.metadata.name
        return ResourceNames(
            service_account=f"{prefix}-server",
            pvc=f"{prefix}-data",
            deployment=f"{prefix}-server",
            service=f"{prefix}-minecraft",
            route=f"{prefix}-minecraft",
            tls_secret=f"{prefix}-minecraft-tls",
        )


@dataclass(frozen=True)
class ProbePolicy:
    initial_delay_seconds: int
    period_seconds: int
    timeout_seconds: int
    failure_threshold: int


Builder = Callable[[Manifest, Minecraft, "ResourceNames"], Manifest]
""" Turns the current state of an object into its desired state. """

READINESS = ProbePolicy(initial_delay_seconds=30, period_seconds=10, timeout_seconds=1, failure_threshold=3)
LIVENESS = ProbePolicy(initial_delay_seconds=30, period_seconds=10, timeout_seconds=3, failure_threshold=5)


def selector(minecraft: Minecraft) -> dict[str, str]:
    """
    The labels of the server pods. Used as the Deployment's selector and pod labels as well as the Service selector.
    """

    return {
        KUBERNETES_LABEL_NAME: "server",
        KUBERNETES_LABEL_INSTANCE: f"server-{minecraft.metadata.name}",
        KUBERNETES_LABEL_COMPONENT: "server",
    }


def service_account(sa: Manifest, minecraft: Minecraft, names: ResourceNames) -> Manifest:
    owned_by_controller(sa, minecraft)
    return sa


def persistent_volume_claim(pvc: Manifest, minecraft: Minecraft, names: ResourceNames) -> Manifest:
    owned_by_controller(pvc, minecraft)

    spec = use_or_create(pvc, "spec", dict)
    spec["accessModes"] = ["ReadWriteOnce"]
    set_resources(use_or_create(spec, "resources", dict), "storage", "1Gi", None)
    return pvc


def deployment(deployment: Manifest, minecraft: Minecraft, names: ResourceNames) -> Manifest:
    owned_by_controller(deployment, minecraft)
    labels = selector(minecraft)

    spec = use_or_create(deployment, "spec", dict)
    # always scale to 1
    spec["replicas"] = 1
    spec["selector"] = {"matchLabels": dict(labels)}
    # never run two servers on the same data
    spec["strategy"] = {"type": "Recreate"}

    template = use_or_create(spec, "template", dict)
    use_or_create(template, "metadata", dict)["labels"] = dict(labels)

    pod_spec = use_or_create(template, "spec", dict)
    pod_spec["serviceAccountName"] = names.service_account

    # init container

    download = apply_named(use_or_create(pod_spec, "initContainers", list), "download")
    download["image"] = DOWNLOAD_IMAGE
    download["command"] = ["bash", "-c", DOWNLOAD_SCRIPT]
    _apply_volume_mount(download, "data", "/data", read_only=False)

    containers = use_or_create(pod_spec, "containers", list)

    # main container

    server = apply_named(containers, "server")
    server["image"] = SERVER_IMAGE
    server["workingDir"] = "/data"
    server["command"] = [
        "java",
        "-XX:+PrintFlagsFinal",
        "-jar",
        "/data/server/server.jar",
        "--nogui",
        "--port",
        str(SERVER_PORT),
    ]
    set_resources(use_or_create(server, "resources", dict), "memory", "2Gi", "2Gi")
    _apply_volume_mount(server, "data", "/data", read_only=False)
    _apply_volume_mount(server, "logs", "/logs", read_only=False)
    _apply_tcp_probe(server, "readinessProbe", SERVER_PORT, READINESS)
    _apply_tcp_probe(server, "livenessProbe", SERVER_PORT, LIVENESS)

    # tls sidecar

    tls = apply_named(containers, "tls")
    tls["image"] = SERVER_IMAGE
    tls["command"] = ["stunnel", "/etc/mctunnel.conf"]
    set_resources(use_or_create(tls, "resources", dict), "memory", "64Mi", "64Mi")
    port = apply_named(use_or_create(tls, "ports", list), TLS_PORT_NAME)
    port["containerPort"] = TLS_PORT
    port["protocol"] = "TCP"
    _apply_volume_mount(tls, "tls", "/etc/mc-tls", read_only=True)
    _apply_tcp_probe(tls, "readinessProbe", TLS_PORT, READINESS)
    _apply_tcp_probe(tls, "livenessProbe", TLS_PORT, LIVENESS)

    # volumes

    volumes = use_or_create(pod_spec, "volumes", list)
    claim = use_or_create(apply_named(volumes, "data"), "persistentVolumeClaim", dict)
    claim["claimName"] = names.pvc
    claim.pop("readOnly", None)
    use_or_create(apply_named(volumes, "logs"), "emptyDir", dict)
    use_or_create(apply_named(volumes, "tls"), "secret", dict)["secretName"] = names.tls_secret

    return deployment


def service(service: Manifest, minecraft: Minecraft, names: ResourceNames) -> Manifest:
    owned_by_controller(service, minecraft)

    # the sidecar mounts this secret, it must match the deployment's `tls` volume
    annotations = use_or_create(service["metadata"], "annotations", dict)
    annotations[SERVING_CERT_ANNOTATION] = names.tls_secret

    spec = use_or_create(service, "spec", dict)
    spec["selector"] = selector(minecraft)
    spec["type"] = "ClusterIP"
    spec["ports"] = [
        {
            "name": TLS_PORT_NAME,
            "port": TLS_PORT,
            "protocol": "TCP",
            "targetPort": TLS_PORT_NAME,
        }
    ]
    return service


def route(route: Manifest, minecraft: Minecraft, names: ResourceNames) -> Manifest:
    owned_by_controller(route, minecraft)

    spec = use_or_create(route, "spec", dict)
    tls = use_or_create(spec, "tls", dict)
    tls["termination"] = "passthrough"
    tls["insecureEdgeTerminationPolicy"] = "None"
    spec["port"] = {"targetPort": TLS_PORT_NAME}
    to = use_or_create(spec, "to", dict)
    to["kind"] = "Service"
    to["name"] = names.service
    to["weight"] = 100
    return route


def _apply_volume_mount(container: dict[str, Any], name: str, path: str, read_only: bool) -> None:
    mount = apply_named(use_or_create(container, "volumeMounts", list), name)
    mount["mountPath"] = path
    # the API server omits `readOnly: false`
    if read_only:
        mount["readOnly"] = True
    else:
        mount.pop("readOnly", None)


def _apply_tcp_probe(container: dict[str, Any], key: str, port: int, policy: ProbePolicy) -> None:
    probe = use_or_create(container, key, dict)
    probe["initialDelaySeconds"] = policy.initial_delay_seconds
    probe["periodSeconds"] = policy.period_seconds
    probe["timeoutSeconds"] = policy.timeout_seconds
    probe["failureThreshold"] = policy.failure_threshold
    use_or_create(probe, "tcpSocket", dict)["port"] = port
