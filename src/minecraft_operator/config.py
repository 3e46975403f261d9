from dataclasses import dataclass
from pathlib import Path

from loguru import logger

KUBERNETES_LABEL_NAME = "app.kubernetes.io/name"
KUBERNETES_LABEL_INSTANCE = "app.kubernetes.io/instance"
KUBERNETES_LABEL_COMPONENT = "app.kubernetes.io/component"

SERVING_CERT_ANNOTATION = "service.beta.openshift.io/serving-cert-secret-name"
""" Asks OpenShift's service CA to populate a secret of the given name with a certificate for the service. """

DOWNLOAD_IMAGE = "registry.access.redhat.com/ubi8-minimal"
SERVER_IMAGE = "docker.io/ctron/minecraft-base:latest"
SERVER_JAR_URL = "https://launcher.mojang.com/v1/objects/a412fd69db1f81db3f511c1463fd304675244077/server.jar"

SERVER_PORT = 1337
TLS_PORT = 11337
TLS_PORT_NAME = "mc-tls"


@dataclass
class OperatorConfig:
    """
    Runtime configuration of the operator, read from a `minecraft-operator.yaml` file if one exists. Options given on
    the command line take precedence.
    """

    FILENAME = "minecraft-operator.yaml"

    namespace: str | None = None
    """
    The namespace to watch for `Minecraft` resources. If not set, the namespace the operator runs in is used, or the
    namespace of the current Kubeconfig context.
    """

    openshift: bool | None = None
    """
    Whether to manage OpenShift routes. If not set, this is determined by checking if the cluster serves the
    `route.openshift.io` API.
    """

    resync_seconds: int = 300
    """
    Interval after which all `Minecraft` resources are reconciled again, even if they did not change.
    """

    @staticmethod
    def load(file: Path | None = None, /) -> "OperatorConfig":
        """
        Load the configuration from the given file, or from the first `minecraft-operator.yaml` in the working
        directory or any of its parents. If there is no such file, the default configuration is returned.
        """

        from databind.json import load as deser
        from yaml import safe_load

        if file is None:
            file = find_config_file(OperatorConfig.FILENAME)
        if file is None:
            return OperatorConfig()

        logger.debug("Loading operator configuration from '{}'", file)
        return deser(safe_load(file.read_text()) or {}, OperatorConfig, filename=str(file))


def find_config_file(filename: str, cwd: Path | None = None) -> Path | None:
    """
    Find a file with the given *filename* in the given *cwd* or any of its parent directories.
    """

    cwd = cwd or Path.cwd()
    return next((d / filename for d in [cwd, *cwd.parents] if (d / filename).is_file()), None)
