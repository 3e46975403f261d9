from collections.abc import Callable
from copy import deepcopy

from kubernetes.client import ApiException
from loguru import logger
from urllib3.exceptions import HTTPError

from minecraft_operator import topology
from minecraft_operator.client import (
    DEPLOYMENT,
    MINECRAFT,
    PERSISTENT_VOLUME_CLAIM,
    ROUTE,
    SERVICE,
    SERVICE_ACCOUNT,
    ResourceClient,
    ResourceKind,
)
from minecraft_operator.process import create_or_update
from minecraft_operator.resources.minecraft import Minecraft
from minecraft_operator.status import StatusReporter

ClientFactory = Callable[[ResourceKind], ResourceClient]
""" Returns the client to use for a resource kind. """

RECONCILE_ERRORS = (ApiException, HTTPError, ValueError)
"""
Errors that fail a reconciliation and are reported in the status of the `Minecraft` resource: API errors (including
conflicts), transport errors and errors while building the desired state of an object.
"""


class MinecraftController:
    """
    Reconciles `Minecraft` resources.

    The controller holds no state between reconciliations. Every call to `reconcile()` derives the objects to manage
    from the resource and compares them against what is currently in the cluster. Calls for the same resource must
    not run concurrently.
    """

    def __init__(self, clients: ClientFactory, has_openshift: bool) -> None:
        """
        Args:
            clients: Used to obtain a client for each resource kind the controller manages.
            has_openshift: Whether the cluster serves OpenShift routes. If not, no route is managed at all.
        """

        self._service_accounts = clients(SERVICE_ACCOUNT)
        self._pvcs = clients(PERSISTENT_VOLUME_CLAIM)
        self._deployments = clients(DEPLOYMENT)
        self._services = clients(SERVICE)
        self._routes = clients(ROUTE) if has_openshift else None
        self._status = StatusReporter(clients(MINECRAFT))

    def reconcile(self, original: Minecraft) -> None:
        """
        Reconcile a `Minecraft` resource and record the outcome in its status.

        Failures while applying the managed objects are not raised but reported as the `Failed` phase. Errors writing
        the status are propagated.
        """

        namespace = original.metadata.namespace
        if not namespace:
            raise ValueError(f"Minecraft '{original.metadata.name}' has no namespace")

        logger.info("Reconcile: {}/{}", namespace, original.metadata.name)

        try:
            minecraft = self._do_reconcile(deepcopy(original), namespace)
        except RECONCILE_ERRORS as exc:
            logger.warning("Failed to reconcile Minecraft '{}/{}': {}", namespace, original.metadata.name, exc)
            minecraft = deepcopy(original).with_status("Failed", str(exc))
        else:
            minecraft.with_status("Active", None)

        self._status.report(original, minecraft)

    def _do_reconcile(self, minecraft: Minecraft, namespace: str) -> Minecraft:
        names = topology.ResourceNames.of(minecraft)

        def apply(client: ResourceClient, name: str, builder: topology.Builder) -> None:
            create_or_update(client, namespace, name, lambda manifest: builder(manifest, minecraft, names))

        apply(self._service_accounts, names.service_account, topology.service_account)
        apply(self._pvcs, names.pvc, topology.persistent_volume_claim)
        apply(self._deployments, names.deployment, topology.deployment)
        apply(self._services, names.service, topology.service)
        if self._routes is not None:
            apply(self._routes, names.route, topology.route)

        return minecraft
