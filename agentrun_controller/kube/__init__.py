"""Kubernetes access layer.

- ``models``: typed manifests (Role, RoleBinding, Pod, ...).
- ``errors``: ``KubeApiError`` and its not-found / already-exists variants.
- ``client``: the ``ClusterClient`` protocol the reconciler depends on and
  ``KubeClient``, its async REST implementation over ``httpx``.
"""

from .errors import AlreadyExistsError, KubeApiError, NotFoundError

__all__ = [
    "AlreadyExistsError",
    "KubeApiError",
    "NotFoundError",
]
