from copy import deepcopy
from itertools import count

import pytest
from kubernetes.client import ApiException

from minecraft_operator.client import MINECRAFT, ResourceClient, ResourceKind
from minecraft_operator.resources import ObjectMetadata
from minecraft_operator.resources.minecraft import Minecraft
from minecraft_operator.tools.types import Manifest


class FakeResourceClient(ResourceClient):
    """
    An in-memory stand-in for the objects of one kind in a cluster. Like the API server, it assigns a UID and
    resource version, rejects stale updates and fills in a few defaults that the operator does not set itself.
    """

    def __init__(self, kind: ResourceKind, log: list[tuple[str, str, str]] | None = None) -> None:
        self.kind = kind
        self.log = log if log is not None else []
        self.objects: dict[tuple[str, str], Manifest] = {}
        self.calls: list[tuple[str, str]] = []
        self.failures: dict[str, ApiException] = {}
        self._versions = count(1)

    def writes(self) -> list[tuple[str, str]]:
        return [call for call in self.calls if call[0] != "get"]

    def _record(self, verb: str, name: str) -> None:
        self.calls.append((verb, name))
        self.log.append((self.kind.kind, verb, name))
        if verb in self.failures:
            raise self.failures[verb]

    def get(self, namespace: str, name: str) -> Manifest | None:
        self._record("get", name)
        obj = self.objects.get((namespace, name))
        return deepcopy(obj) if obj is not None else None

    def create(self, manifest: Manifest) -> Manifest:
        name, namespace = manifest["metadata"]["name"], manifest["metadata"]["namespace"]
        self._record("create", name)
        if (namespace, name) in self.objects:
            raise ApiException(status=409, reason="AlreadyExists")
        obj = deepcopy(manifest)
        obj["metadata"]["uid"] = f"uid-{name}"
        self._apply_defaults(obj)
        return self._store(obj)

    def replace(self, manifest: Manifest) -> Manifest:
        name, namespace = manifest["metadata"]["name"], manifest["metadata"]["namespace"]
        self._record("replace", name)
        self._check_version(manifest)
        obj = deepcopy(manifest)
        self._apply_defaults(obj)
        return self._store(obj)

    def replace_status(self, manifest: Manifest) -> Manifest:
        name, namespace = manifest["metadata"]["name"], manifest["metadata"]["namespace"]
        self._record("replace_status", name)
        current = self._check_version(manifest)
        obj = deepcopy(current)
        obj["status"] = deepcopy(manifest.get("status"))
        return self._store(obj)

    def _check_version(self, manifest: Manifest) -> Manifest:
        key = (manifest["metadata"]["namespace"], manifest["metadata"]["name"])
        if key not in self.objects:
            raise ApiException(status=404, reason="Not Found")
        current = self.objects[key]
        if manifest["metadata"].get("resourceVersion") != current["metadata"]["resourceVersion"]:
            raise ApiException(status=409, reason="Conflict")
        return current

    def _store(self, obj: Manifest) -> Manifest:
        obj["metadata"]["resourceVersion"] = str(next(self._versions))
        self.objects[(obj["metadata"]["namespace"], obj["metadata"]["name"])] = obj
        return deepcopy(obj)

    def _apply_defaults(self, obj: Manifest) -> None:
        _drop_false(obj)
        if self.kind.kind == "Deployment":
            obj["spec"].setdefault("revisionHistoryLimit", 10)
            pod_spec = obj["spec"]["template"]["spec"]
            pod_spec.setdefault("restartPolicy", "Always")
            for container in pod_spec["containers"] + pod_spec.get("initContainers", []):
                container.setdefault("imagePullPolicy", "IfNotPresent")
                container.setdefault("terminationMessagePath", "/dev/termination-log")
            for volume in pod_spec.get("volumes", []):
                if "secret" in volume:
                    volume["secret"].setdefault("defaultMode", 420)
        elif self.kind.kind == "Service":
            obj["spec"].setdefault("clusterIP", "10.0.0.1")
            obj["spec"].setdefault("sessionAffinity", "None")
        elif self.kind.kind == "PersistentVolumeClaim":
            obj["spec"].setdefault("volumeMode", "Filesystem")
        elif self.kind.kind == "Route":
            obj["spec"].setdefault("host", f"{obj['metadata']['name']}.apps.example.com")


def _drop_false(value: object) -> None:
    """
    Remove `false` booleans from a manifest, like the API server does for fields declared with `omitempty`.
    """

    if isinstance(value, dict):
        for key in [k for k, v in value.items() if v is False]:
            del value[key]
        for item in value.values():
            _drop_false(item)
    elif isinstance(value, list):
        for item in value:
            _drop_false(item)


class FakeClients:
    """
    Hands out one `FakeResourceClient` per resource kind and remembers which kinds were requested.
    """

    def __init__(self) -> None:
        self.clients: dict[ResourceKind, FakeResourceClient] = {}
        self.log: list[tuple[str, str, str]] = []

    def __call__(self, kind: ResourceKind) -> FakeResourceClient:
        if kind not in self.clients:
            self.clients[kind] = FakeResourceClient(kind, self.log)
        return self.clients[kind]

    def writes(self) -> list[tuple[str, str, str]]:
        return [call for call in self.log if call[1] != "get"]


@pytest.fixture
def clients() -> FakeClients:
    return FakeClients()


@pytest.fixture
def minecraft(clients: FakeClients) -> Minecraft:
    """
    A `Minecraft` resource named `p` in namespace `ns` that exists in the fake cluster.
    """

    resource = Minecraft(metadata=ObjectMetadata(name="p", namespace="ns", uid="uid-p"))
    stored = clients(MINECRAFT)._store(resource.dump())
    return Minecraft.load(stored)
