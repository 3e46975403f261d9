from dataclasses import dataclass, field
from typing import Annotated, ClassVar, Literal, get_args

from databind.core import ExtraKeys, SerializeDefaults

from minecraft_operator.resources import CustomResource, ObjectMetadata

GROUP = "minecraft.dentrassi.de"
VERSION = "v1alpha1"
API_VERSION = f"{GROUP}/{VERSION}"


Phase = Literal["Active", "Failed"]


@ExtraKeys()
@dataclass
class MinecraftSpec:
    """
    The desired state of a Minecraft server. There is nothing to configure yet; unknown keys are accepted so that
    objects written against a newer schema can still be reconciled.
    """


@dataclass
class MinecraftStatus:
    """
    Serialized without unset fields, a status of `Active` carries no `message`.
    """

    phase: Phase | None = None
    """ The outcome of the last reconciliation. """

    message: str | None = None
    """ The error message if the last reconciliation failed. """


@dataclass(kw_only=True)
class Minecraft(CustomResource, api_version=API_VERSION):
    """
    A single Minecraft server instance. The operator creates a Deployment running the server behind a TLS terminating
    sidecar, along with the storage, service account and network objects it needs.
    """

    metadata: Annotated[ObjectMetadata, SerializeDefaults(False)]
    spec: MinecraftSpec = field(default_factory=MinecraftSpec)
    status: Annotated[MinecraftStatus, SerializeDefaults(False)] | None = None

    CRD: ClassVar = {
        "apiVersion": "apiextensions.k8s.io/v1",
        "kind": "CustomResourceDefinition",
        "metadata": {
            "name": f"minecrafts.{GROUP}",
        },
        "spec": {
            "group": GROUP,
            "names": {
                "kind": "Minecraft",
                "plural": "minecrafts",
                "singular": "minecraft",
            },
            "scope": "Namespaced",
            "versions": [
                {
                    "name": VERSION,
                    "served": True,
                    "storage": True,
                    "subresources": {"status": {}},
                    "schema": {
                        "openAPIV3Schema": {
                            "type": "object",
                            "properties": {
                                "spec": {
                                    "type": "object",
                                    "x-kubernetes-preserve-unknown-fields": True,
                                },
                                "status": {
                                    "type": "object",
                                    "properties": {
                                        "phase": {"type": "string", "enum": list(get_args(Phase))},
                                        "message": {"type": "string"},
                                    },
                                },
                            },
                        }
                    },
                    "additionalPrinterColumns": [
                        {"name": "Phase", "type": "string", "jsonPath": ".status.phase"},
                        {"name": "Age", "type": "date", "jsonPath": ".metadata.creationTimestamp"},
                    ],
                }
            ],
        },
    }

    def with_status(self, phase: Phase, message: str | None = None) -> "Minecraft":
        """
        Set the status of the resource, creating it if necessary. Returns the resource itself.
        """

        if self.status is None:
            self.status = MinecraftStatus()
        self.status.phase = phase
        self.status.message = message
        return self
