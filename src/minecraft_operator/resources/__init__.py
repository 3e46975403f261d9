"""
This package contains the custom resources served by the operator.
"""

from abc import ABC
from dataclasses import dataclass
from typing import ClassVar, cast
from typing_extensions import Self
from databind.core import ExtraKeys
from databind.json import load as deser, dump as ser

from minecraft_operator.tools.types import Manifest


class CustomResource(ABC):
    """
    Base class for the operator's custom resources.
    """

    API_VERSION: ClassVar[str]
    """
    The API version of the resource, i.e. `<group>/<version>`.
    """

    KIND: ClassVar[str]
    """
    The kind identifier of the resource. If not set, this will default to the class name.
    """

    PLURAL: ClassVar[str]
    """
    The plural name of the resource as used in API paths. Defaults to the lowercased kind with an `s` appended.
    """

    def __init_subclass__(cls, api_version: str, kind: str | None = None, plural: str | None = None) -> None:
        cls.API_VERSION = api_version
        if kind is not None or "KIND" not in vars(cls):
            cls.KIND = kind or cls.__name__
        cls.PLURAL = plural or cls.KIND.lower() + "s"

    @classmethod
    def group(cls) -> str:
        return cls.API_VERSION.split("/")[0]

    @classmethod
    def version(cls) -> str:
        return cls.API_VERSION.split("/")[1]

    @classmethod
    def load(cls, manifest: Manifest) -> "Self":
        """
        Load the resource from a manifest. Keys the resource does not model are dropped.

        Raises:
            ValueError: If the `apiVersion` or `kind` of the manifest does not match the resource.
        """

        if manifest.get("apiVersion") != cls.API_VERSION:
            raise ValueError(f"Expected apiVersion {cls.API_VERSION!r}, got {manifest.get('apiVersion')!r}")
        if manifest.get("kind") != cls.KIND:
            raise ValueError(f"Expected kind {cls.KIND!r}, got {manifest.get('kind')!r}")

        manifest = Manifest(dict(manifest))
        manifest.pop("apiVersion")
        manifest.pop("kind")

        return cast(Self, deser(manifest, cls))

    def dump(self) -> Manifest:
        """
        Dump the resource to a manifest.
        """

        manifest = cast(Manifest, ser(self, type(self)))
        manifest["apiVersion"] = self.API_VERSION
        manifest["kind"] = self.KIND
        return Manifest(manifest)


@ExtraKeys()
@dataclass
class ObjectMetadata:
    """
    Kubernetes object metadata. Only the fields the operator reads are modelled.
    """

    name: str
    namespace: str | None = None
    uid: str | None = None
    resourceVersion: str | None = None
    generation: int | None = None
    labels: dict[str, str] | None = None
    annotations: dict[str, str] | None = None
