"""
Thin, per-kind wrappers around the Kubernetes dynamic client. The reconciliation logic only ever talks to a
`ResourceClient`, which keeps it independent of discovery and transport and easy to replace in tests.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from kubernetes.dynamic import DynamicClient
from kubernetes.dynamic.exceptions import NotFoundError, ResourceNotFoundError
from loguru import logger

from minecraft_operator.resources.minecraft import Minecraft
from minecraft_operator.tools.types import Manifest


@dataclass(frozen=True)
class ResourceKind:
    api_version: str
    kind: str

    def __str__(self) -> str:
        return f"{self.kind}.{self.api_version}"


SERVICE_ACCOUNT = ResourceKind("v1", "ServiceAccount")
PERSISTENT_VOLUME_CLAIM = ResourceKind("v1", "PersistentVolumeClaim")
DEPLOYMENT = ResourceKind("apps/v1", "Deployment")
SERVICE = ResourceKind("v1", "Service")
ROUTE = ResourceKind("route.openshift.io/v1", "Route")
MINECRAFT = ResourceKind(Minecraft.API_VERSION, Minecraft.KIND)


class ResourceClient(ABC):
    """
    Access to the objects of a single resource kind.
    """

    kind: ResourceKind

    @abstractmethod
    def get(self, namespace: str, name: str) -> Manifest | None:
        """
        Fetch an object, or return `None` if it does not exist.
        """

    @abstractmethod
    def create(self, manifest: Manifest) -> Manifest:
        """
        Create a new object.
        """

    @abstractmethod
    def replace(self, manifest: Manifest) -> Manifest:
        """
        Replace an existing object. The `metadata.resourceVersion` of the manifest is used for optimistic locking.
        """

    @abstractmethod
    def replace_status(self, manifest: Manifest) -> Manifest:
        """
        Replace the `status` subresource of an existing object.
        """


class DynamicResourceClient(ResourceClient):
    """
    Implements a `ResourceClient` through the Kubernetes dynamic client. Any API error other than a 404 on `get` is
    propagated to the caller.
    """

    def __init__(self, client: DynamicClient, kind: ResourceKind) -> None:
        self.kind = kind
        self._client = client
        self._resource = client.resources.get(api_version=kind.api_version, kind=kind.kind)

    def get(self, namespace: str, name: str) -> Manifest | None:
        try:
            return Manifest(self._client.get(self._resource, name=name, namespace=namespace).to_dict())
        except NotFoundError:
            return None

    def create(self, manifest: Manifest) -> Manifest:
        logger.debug("Creating {} {}/{}", self.kind.kind, _namespace(manifest), _name(manifest))
        result = self._client.create(self._resource, body=manifest, namespace=_namespace(manifest))
        return Manifest(result.to_dict())

    def replace(self, manifest: Manifest) -> Manifest:
        logger.debug("Replacing {} {}/{}", self.kind.kind, _namespace(manifest), _name(manifest))
        result = self._client.replace(
            self._resource, body=manifest, name=_name(manifest), namespace=_namespace(manifest)
        )
        return Manifest(result.to_dict())

    def replace_status(self, manifest: Manifest) -> Manifest:
        logger.debug("Replacing status of {} {}/{}", self.kind.kind, _namespace(manifest), _name(manifest))
        result = self._client.replace(
            self._resource.status, body=manifest, name=_name(manifest), namespace=_namespace(manifest)
        )
        return Manifest(result.to_dict())


def has_resource_kind(client: DynamicClient, kind: ResourceKind) -> bool:
    """
    Check through API discovery whether the cluster serves the given resource kind.
    """

    try:
        client.resources.get(api_version=kind.api_version, kind=kind.kind)
    except ResourceNotFoundError:
        return False
    return True


def _name(manifest: Manifest) -> str:
    return manifest["metadata"]["name"]


def _namespace(manifest: Manifest) -> str | None:
    return manifest["metadata"].get("namespace")
