"""
Helpers to mutate nested Kubernetes manifests in place. They only ever touch the keys they are asked to set, so fields
that the API server defaults on an existing object are left alone and a repeated mutation compares equal to the
previous result.
"""

from collections.abc import Callable
from typing import Any, TypeVar

T = TypeVar("T")


def use_or_create(obj: dict[str, Any], key: str, default: Callable[[], T]) -> T:
    """
    Return the value at *key* in *obj*. If the key is missing or `None`, it is populated with the result of *default*
    first.
    """

    if obj.get(key) is None:
        obj[key] = default()
    return obj[key]


def apply_named(items: list[dict[str, Any]], name: str) -> dict[str, Any]:
    """
    Find the entry with the given *name* in a list of named entries (containers, volumes, ports, ...). If there is no
    such entry, a new one is appended.
    """

    for item in items:
        if item.get("name") == name:
            return item
    item = {"name": name}
    items.append(item)
    return item


def set_resources(requirements: dict[str, Any], resource: str, request: str | None, limit: str | None) -> None:
    """
    Set the request and limit of a single *resource* (e.g. `memory`) on a `ResourceRequirements` object. A value of
    `None` removes the corresponding entry.
    """

    for key, value in (("requests", request), ("limits", limit)):
        if value is not None:
            use_or_create(requirements, key, dict)[resource] = value
        elif requirements.get(key):
            requirements[key].pop(resource, None)
            if not requirements[key]:
                del requirements[key]
