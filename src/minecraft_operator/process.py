from copy import deepcopy

from loguru import logger

from minecraft_operator.client import ResourceClient
from minecraft_operator.tools.types import Manifest, Mutator


def create_or_update(client: ResourceClient, namespace: str, name: str, mutator: Mutator) -> Manifest:
    """
    Bring a single object into its desired state.

    The object is fetched from the cluster, or a new one with only its name and namespace set is started from if it
    does not exist. The *mutator* turns that into the desired state. The result is then created, replaced, or, if it
    is identical to what exists already, not written at all. Errors raised by the mutator or the API are propagated.

    Args:
        client: The client for the kind of the object.
        namespace: The namespace of the object.
        name: The name of the object.
        mutator: Receives a copy of the current (or default) object and returns the desired object.

    Returns:
        The object as it exists in the cluster after the call.
    """

    existing = client.get(namespace, name)

    if existing is None:
        base = Manifest(
            {
                "apiVersion": client.kind.api_version,
                "kind": client.kind.kind,
                "metadata": {"name": name, "namespace": namespace},
            }
        )
    else:
        base = deepcopy(existing)

    desired = mutator(base)

    if existing is None:
        logger.info("Creating {} '{}/{}'", client.kind.kind, namespace, name)
        return client.create(desired)

    if desired == existing:
        logger.debug("{} '{}/{}' is up to date", client.kind.kind, namespace, name)
        return existing

    logger.info("Updating {} '{}/{}'", client.kind.kind, namespace, name)
    return client.replace(desired)
