from loguru import logger

from minecraft_operator.client import ResourceClient
from minecraft_operator.resources.minecraft import Minecraft


class StatusReporter:
    """
    Writes the status of a `Minecraft` resource back to the cluster, but only if the resource changed. Writing an
    unchanged status would trigger another watch event and thus another reconciliation.
    """

    def __init__(self, client: ResourceClient) -> None:
        self._client = client

    def report(self, original: Minecraft, computed: Minecraft) -> bool:
        """
        Write the status of *computed* if it differs from *original*. Errors are propagated.

        Returns:
            Whether the status was written.
        """

        if computed == original:
            return False

        status = computed.status
        logger.info(
            "Setting status of Minecraft '{}/{}' to {}",
            computed.metadata.namespace,
            computed.metadata.name,
            status.phase if status and status.phase else None,
        )
        self._client.replace_status(computed.dump())
        return True
