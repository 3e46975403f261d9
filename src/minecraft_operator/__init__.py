"""
A Kubernetes operator for Minecraft servers. For every `Minecraft` resource it maintains a Deployment running the
server behind a TLS terminating sidecar, together with a service account, a persistent volume claim, a service and,
on OpenShift, a route.
"""

__version__ = "0.1.0"
