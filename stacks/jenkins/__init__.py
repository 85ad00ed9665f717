"""Jenkins on Fargate: stack and the constructs it is assembled from."""

from .cluster import ClusterHandle, ClusterProvisioner
from .environment import EnvironmentHandles, EnvironmentResolver
from .service import ServiceSizing, ServiceTopology, ServiceTopologyBuilder
from .stack import JenkinsStack
from .storage import AccessPointHandle, PosixIdentity, VolumeHandle, VolumeProvisioner
from .task_definition import (
    ContainerDescriptor,
    TaskDefinitionDescriptor,
    TaskDefinitionOverrideCoordinator,
    derive_descriptor,
    describe_task_definition,
)

__all__ = [
    "AccessPointHandle",
    "ClusterHandle",
    "ClusterProvisioner",
    "ContainerDescriptor",
    "EnvironmentHandles",
    "EnvironmentResolver",
    "JenkinsStack",
    "PosixIdentity",
    "ServiceSizing",
    "ServiceTopology",
    "ServiceTopologyBuilder",
    "TaskDefinitionDescriptor",
    "TaskDefinitionOverrideCoordinator",
    "VolumeHandle",
    "VolumeProvisioner",
    "derive_descriptor",
    "describe_task_definition",
]
