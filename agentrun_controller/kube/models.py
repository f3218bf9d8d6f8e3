"""Typed Kubernetes manifests used by the provisioner and the reconciler.

Only the fields this project reads or writes are modelled. Objects returned by
the API server parse into these models with unknown fields ignored.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class KubeModel(BaseModel):
    """
    Base Pydantic model for Kubernetes-facing objects.

    - Field names are snake_case in Python and camelCase on the wire.
    - Unknown fields returned by the API server are ignored.
    - ``to_manifest`` renders the object the way the API server expects it:
      aliased keys, ``None`` values dropped.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_manifest(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class PodPhase(str, Enum):
    pending = "Pending"
    running = "Running"
    succeeded = "Succeeded"
    failed = "Failed"
    unknown = "Unknown"


class OwnerReference(KubeModel):
    api_version: str
    kind: str
    name: str
    uid: str
    controller: Optional[bool] = None
    block_owner_deletion: Optional[bool] = None


class ObjectMeta(KubeModel):
    name: str = ""
    namespace: Optional[str] = None
    uid: Optional[str] = None
    labels: Optional[Dict[str, str]] = None
    owner_references: Optional[List[OwnerReference]] = None
    resource_version: Optional[str] = None
    creation_timestamp: Optional[datetime] = None


class PolicyRule(KubeModel):
    api_groups: List[str]
    resources: List[str]
    verbs: List[str]


class Role(KubeModel):
    api_version: str = "rbac.authorization.k8s.io/v1"
    kind: str = "Role"
    metadata: ObjectMeta
    rules: List[PolicyRule] = Field(default_factory=list)


class RoleRef(KubeModel):
    api_group: str = "rbac.authorization.k8s.io"
    kind: str = "Role"
    name: str


class Subject(KubeModel):
    kind: str = "ServiceAccount"
    name: str
    namespace: Optional[str] = None


class RoleBinding(KubeModel):
    api_version: str = "rbac.authorization.k8s.io/v1"
    kind: str = "RoleBinding"
    metadata: ObjectMeta
    role_ref: RoleRef
    subjects: List[Subject] = Field(default_factory=list)


class EnvVar(KubeModel):
    name: str
    value: str = ""


class VolumeMount(KubeModel):
    name: str
    mount_path: str
    read_only: bool = False


class PersistentVolumeClaimSource(KubeModel):
    claim_name: str
    read_only: Optional[bool] = None


class SecretSource(KubeModel):
    secret_name: str


class Volume(KubeModel):
    name: str
    persistent_volume_claim: Optional[PersistentVolumeClaimSource] = None
    empty_dir: Optional[Dict[str, Any]] = None
    secret: Optional[SecretSource] = None


class SeccompProfile(KubeModel):
    type: str = "RuntimeDefault"


class Capabilities(KubeModel):
    drop: List[str] = Field(default_factory=list)


class SecurityContext(KubeModel):
    allow_privilege_escalation: Optional[bool] = None
    read_only_root_filesystem: Optional[bool] = None
    run_as_non_root: Optional[bool] = None
    capabilities: Optional[Capabilities] = None
    seccomp_profile: Optional[SeccompProfile] = None


class PodSecurityContext(KubeModel):
    run_as_non_root: Optional[bool] = None
    run_as_user: Optional[int] = None
    fs_group: Optional[int] = None
    seccomp_profile: Optional[SeccompProfile] = None


class Container(KubeModel):
    name: str
    image: str = ""
    image_pull_policy: Optional[str] = None
    command: Optional[List[str]] = None
    args: Optional[List[str]] = None
    env: List[EnvVar] = Field(default_factory=list)
    volume_mounts: List[VolumeMount] = Field(default_factory=list)
    security_context: Optional[SecurityContext] = None


class PodSpec(KubeModel):
    service_account_name: Optional[str] = None
    restart_policy: Optional[str] = None
    active_deadline_seconds: Optional[int] = None
    security_context: Optional[PodSecurityContext] = None
    containers: List[Container] = Field(default_factory=list)
    volumes: List[Volume] = Field(default_factory=list)


class PodStatus(KubeModel):
    phase: Optional[str] = None


class Pod(KubeModel):
    api_version: str = "v1"
    kind: str = "Pod"
    metadata: ObjectMeta
    spec: Optional[PodSpec] = None
    status: Optional[PodStatus] = None

    @property
    def phase(self) -> Optional[str]:
        return self.status.phase if self.status is not None else None
