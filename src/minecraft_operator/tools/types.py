from collections.abc import Callable
from typing import Any, NewType


Manifest = NewType("Manifest", dict[str, Any])
""" Represents a Kubernetes manifest. """

Mutator = Callable[[Manifest], Manifest]
""" A function that takes the current (or default) state of an object and returns its desired state. """
