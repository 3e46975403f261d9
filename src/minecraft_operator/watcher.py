"""
Drives the controller from the Kubernetes watch API. This is the event source of the operator, the reconciliation
itself lives in `minecraft_operator.controller`.
"""

import time
from collections.abc import Iterable
from typing import Any

from databind.core import ConversionError
from kubernetes.client import ApiException
from kubernetes.dynamic import DynamicClient
from loguru import logger
from urllib3.exceptions import HTTPError

from minecraft_operator.client import MINECRAFT
from minecraft_operator.controller import MinecraftController
from minecraft_operator.resources.minecraft import Minecraft
from minecraft_operator.tools.types import Manifest


class Watcher:
    """
    Lists and watches `Minecraft` resources in a namespace and reconciles each one that was added or modified.

    Events are handled one after another, so the controller never runs twice for the same resource at the same time.
    The watch is reopened with a fresh list every *resync_seconds*, which reconciles all resources again and recovers
    from changes to managed objects that did not touch the `Minecraft` resource itself.
    """

    def __init__(
        self,
        client: DynamicClient,
        controller: MinecraftController,
        namespace: str,
        resync_seconds: int = 300,
        retry_seconds: float = 5,
    ) -> None:
        self._client = client
        self._controller = controller
        self._namespace = namespace
        self._resync_seconds = resync_seconds
        self._retry_seconds = retry_seconds
        self._resource = client.resources.get(api_version=MINECRAFT.api_version, kind=MINECRAFT.kind)
        self._stopped = False

    def stop(self) -> None:
        self._stopped = True

    def run(self) -> None:
        logger.info("Watching Minecraft resources in namespace '{}'", self._namespace)
        while not self._stopped:
            try:
                self._watch(self.resync())
            except (ApiException, HTTPError) as exc:
                if isinstance(exc, ApiException) and exc.status == 410:
                    logger.debug("Watch expired, relisting")
                    continue
                logger.error("Watching Minecraft resources failed, relisting in {}s: {}", self._retry_seconds, exc)
                time.sleep(self._retry_seconds)

    def resync(self) -> str:
        """
        Reconcile all `Minecraft` resources in the namespace. Returns the resource version of the list.
        """

        result = self._client.get(self._resource, namespace=self._namespace).to_dict()
        for item in result.get("items", []):
            item.setdefault("apiVersion", MINECRAFT.api_version)
            item.setdefault("kind", MINECRAFT.kind)
            self.handle(Manifest(item))
        return result["metadata"]["resourceVersion"]

    def _watch(self, resource_version: str) -> None:
        events: Iterable[dict[str, Any]] = self._client.watch(
            self._resource,
            namespace=self._namespace,
            resource_version=resource_version,
            timeout=self._resync_seconds,
        )
        for event in events:
            if self._stopped:
                return
            if event["type"] in ("ADDED", "MODIFIED"):
                self.handle(Manifest(event["raw_object"]))
            elif event["type"] == "ERROR":
                raw = event["raw_object"]
                raise ApiException(status=raw.get("code"), reason=raw.get("reason"))

    def handle(self, manifest: Manifest) -> None:
        """
        Reconcile a single resource. A failure to record the outcome is logged and the resource will be retried on
        the next event or resync.
        """

        try:
            minecraft = Minecraft.load(manifest)
        except (ConversionError, ValueError) as exc:
            logger.error("Ignoring invalid Minecraft resource '{}': {}", manifest["metadata"].get("name"), exc)
            return

        try:
            self._controller.reconcile(minecraft)
        except (ApiException, HTTPError) as exc:
            logger.error(
                "Failed to update status of Minecraft '{}/{}': {}",
                minecraft.metadata.namespace,
                minecraft.metadata.name,
                exc,
            )
