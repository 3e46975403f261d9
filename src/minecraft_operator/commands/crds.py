import yaml

from minecraft_operator.resources.minecraft import Minecraft
from . import app


@app.command()
def crds() -> None:
    """
    Print out the CRDs that need to be installed on a Kubernetes cluster before the operator can be started.
    """

    print("---")
    print(yaml.safe_dump(Minecraft.CRD, sort_keys=False))
