from typing import Any

from minecraft_operator.resources.minecraft import Minecraft
from minecraft_operator.tools.mutate import use_or_create
from minecraft_operator.tools.types import Manifest


class OwnershipError(ValueError):
    """
    Raised when an object cannot be owned by a resource, for example because the owner was never persisted.
    """


def owned_by_controller(child: Manifest, owner: Minecraft) -> None:
    """
    Make *owner* the controlling owner of *child*, replacing any existing owner references. Kubernetes' garbage
    collector will then delete the child when the owner is deleted.

    Raises:
        OwnershipError: If the owner has no UID.
    """

    if not owner.metadata.uid:
        raise OwnershipError(f"{owner.KIND} '{owner.metadata.name}' has no UID, it must be persisted first")

    metadata = use_or_create(child, "metadata", dict)
    metadata["ownerReferences"] = [owner_reference(owner)]


def owner_reference(owner: Minecraft) -> dict[str, Any]:
    """
    Return the controlling owner reference that points to *owner*.
    """

    return {
        "apiVersion": owner.API_VERSION,
        "kind": owner.KIND,
        "name": owner.metadata.name,
        "uid": owner.metadata.uid,
        "controller": True,
        "blockOwnerDeletion": True,
    }
