"""
Task definition override for the Jenkins service.

The load-balanced service pattern cannot attach an EFS volume to the task
definition it generates. This module describes that placeholder, registers a
corrected revision with ``ECS:registerTaskDefinition`` through an
``AwsCustomResource`` and points the already-defined ``AWS::ECS::Service`` at
the new revision with a property override.

Steps, in order:
- derive: copy the placeholder and add the mount and the volume
- register: one new revision per stack create/update
- grant: ``iam:PassRole`` on both roles, TCP 2049 between service and EFS
- override: ``TaskDefinition`` of the service set to the registered ARN

Old revisions are never deregistered.
"""

import copy
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

import jsii
from aws_cdk import (
    IStableAnyProducer,
    Intrinsic,
    Lazy,
    Stack,
    Tags,
    Token,
    aws_ecs as ecs,
    custom_resources as cr,
)
from constructs import Construct

from stacks.common.constants import (
    DEFAULT_JENKINS_HOME_PATH,
    DEFAULT_SERVICE_TAG,
    NFS_PORT,
    REGISTER_TASK_DEFINITION_ACTION,
    REGISTER_TASK_DEFINITION_PERMISSIONS,
    REGISTER_TASK_DEFINITION_SERVICE,
    TASK_DEFINITION_ARN_PATH,
)
from stacks.common.exceptions import ResourceCreationError
from stacks.common.mixins import IAMPolicyMixin, SecurityGroupMixin
from stacks.common.validators import AWSResourceValidator, ConfigValidator
from .service import ServiceTopology
from .storage import VolumeHandle

logger = logging.getLogger(__name__)

# CfnTaskDefinition attribute -> registerTaskDefinition field, copied as-is
COPIED_TASK_PROPERTIES = (
    ("placement_constraints", "placementConstraints"),
    ("proxy_configuration", "proxyConfiguration"),
    ("inference_accelerators", "inferenceAccelerators"),
    ("ipc_mode", "ipcMode"),
    ("pid_mode", "pidMode"),
    ("runtime_platform", "runtimePlatform"),
    ("ephemeral_storage", "ephemeralStorage"),
    ("enable_fault_injection", "enableFaultInjection"),
)


@dataclass
class ContainerDescriptor:
    """
    One entry of ``containerDefinitions``, keyed by ECS API field names.

    ``definition`` holds every field the placeholder renders; nothing is
    filtered out.
    """

    definition: Dict[str, Any]

    @property
    def name(self) -> str:
        return self.definition["name"]

    @property
    def memory(self) -> Optional[int]:
        return self.definition.get("memory")

    @property
    def port_mappings(self) -> List[Dict[str, Any]]:
        return list(self.definition.get("portMappings") or [])

    @property
    def mount_points(self) -> List[Dict[str, Any]]:
        return list(self.definition.get("mountPoints") or [])

    def with_fields(self, **fields: Any) -> "ContainerDescriptor":
        """Copy with the given API fields set; every other field is kept."""
        return ContainerDescriptor({**copy.deepcopy(self.definition), **fields})

    def to_sdk_parameters(self) -> Dict[str, Any]:
        return copy.deepcopy(self.definition)


@dataclass
class TaskDefinitionDescriptor:
    """
    Everything ``registerTaskDefinition`` needs for one revision.

    Task-level ``cpu`` and ``memory`` are strings, as in the ECS API. Fields
    without a named attribute live in ``properties``. ``tags`` is either a
    list of ``{"key", "value"}`` pairs or a token producing one at synthesis.
    """

    family: str
    cpu: str
    memory: str
    network_mode: str
    requires_compatibilities: List[str]
    execution_role_arn: Optional[str]
    task_role_arn: Optional[str]
    containers: List[ContainerDescriptor]
    volumes: List[Dict[str, Any]] = field(default_factory=list)
    properties: Dict[str, Any] = field(default_factory=dict)
    tags: Any = None

    def to_sdk_parameters(self) -> Dict[str, Any]:
        """Render the request parameters for ``ECS:registerTaskDefinition``."""
        parameters = {
            **copy.deepcopy(self.properties),
            "containerDefinitions": [container.to_sdk_parameters() for container in self.containers],
            "cpu": self.cpu,
            "family": self.family,
            "memory": self.memory,
            "networkMode": self.network_mode,
            "requiresCompatibilities": list(self.requires_compatibilities),
            "volumes": [copy.deepcopy(volume) for volume in self.volumes],
        }
        if self.execution_role_arn:
            parameters["executionRoleArn"] = self.execution_role_arn
        if self.task_role_arn:
            parameters["taskRoleArn"] = self.task_role_arn
        if self.tags is not None:
            parameters["tags"] = self.tags
        return parameters


@jsii.implements(IStableAnyProducer)
class PlaceholderTags:
    """Tags of a task definition as they stand at synthesis, in ECS API form."""

    def __init__(self, cfn_task_definition: ecs.CfnTaskDefinition) -> None:
        self._cfn_task_definition = cfn_task_definition

    def produce(self) -> Optional[List[Dict[str, str]]]:
        # Tags.of() applies during synthesis, after the coordinator exists
        rendered = self._cfn_task_definition.tags.render_tags()
        if not rendered:
            return None
        return [{"key": tag["Key"], "value": tag["Value"]} for tag in rendered]


def _is_intrinsic(value: Any) -> bool:
    if not isinstance(value, dict) or len(value) != 1:
        return False
    key = next(iter(value))
    return key == "Ref" or key.startswith("Fn::")


def _as_tokens(value: Any) -> Any:
    """Turn resolved CloudFormation intrinsics back into string tokens."""
    if _is_intrinsic(value):
        return Token.as_string(Intrinsic(value))
    if isinstance(value, dict):
        return {key: _as_tokens(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_as_tokens(item) for item in value]
    return value


def describe_task_definition(task_definition: ecs.TaskDefinition) -> TaskDefinitionDescriptor:
    """
    Describe a CDK task definition in ``registerTaskDefinition`` terms.

    Every field comes from the underlying ``CfnTaskDefinition`` as rendered
    now, so the placeholder must be complete before it is described. Nothing
    is added or changed; tags are read at synthesis.

    Raises:
        ResourceCreationError: If the task definition has no container
    """
    cfn_task_definition = task_definition.node.default_child
    if not isinstance(cfn_task_definition, ecs.CfnTaskDefinition):
        raise ResourceCreationError(
            "Task definition has no CfnTaskDefinition child to copy",
            resource_type="AWS::ECS::TaskDefinition",
            resource_id=task_definition.node.path
        )

    stack = Stack.of(task_definition)

    def resolved(value: Any) -> Any:
        return _as_tokens(stack.resolve(value))

    containers = [
        ContainerDescriptor(definition)
        for definition in resolved(cfn_task_definition.container_definitions) or []
    ]
    if not containers:
        raise ResourceCreationError(
            "Task definition has no container to copy",
            resource_type="AWS::ECS::TaskDefinition",
            resource_id=task_definition.node.path
        )

    properties = {}
    for attribute, api_field in COPIED_TASK_PROPERTIES:
        value = resolved(getattr(cfn_task_definition, attribute, None))
        if value is not None:
            properties[api_field] = value

    return TaskDefinitionDescriptor(
        family=resolved(cfn_task_definition.family),
        cpu=resolved(cfn_task_definition.cpu),
        memory=resolved(cfn_task_definition.memory),
        network_mode=resolved(cfn_task_definition.network_mode),
        requires_compatibilities=list(resolved(cfn_task_definition.requires_compatibilities) or []),
        execution_role_arn=resolved(cfn_task_definition.execution_role_arn),
        task_role_arn=resolved(cfn_task_definition.task_role_arn),
        containers=containers,
        volumes=list(resolved(cfn_task_definition.volumes) or []),
        properties=properties,
        tags=Lazy.any(PlaceholderTags(cfn_task_definition))
    )


def derive_descriptor(placeholder: TaskDefinitionDescriptor,
                      volume: VolumeHandle,
                      container_path: str = DEFAULT_JENKINS_HOME_PATH) -> TaskDefinitionDescriptor:
    """
    Add the EFS mount and volume to a placeholder description.

    Every container gets the read-write mount at ``container_path`` and a
    hard memory limit equal to the task memory; all other fields are copied.
    """
    mount_point = {
        "containerPath": container_path,
        "sourceVolume": volume.volume_name,
        "readOnly": False
    }
    containers = [
        container.with_fields(
            memory=int(placeholder.memory),
            mountPoints=container.mount_points + [mount_point]
        )
        for container in placeholder.containers
    ]
    return replace(
        placeholder,
        containers=containers,
        volumes=placeholder.volumes + [volume.to_volume_configuration()]
    )


class TaskDefinitionOverrideCoordinator(Construct, IAMPolicyMixin, SecurityGroupMixin):
    """
    Registers the corrected task definition and points the service at it.

    Must be created after the service topology and the volume exist. Any
    failure raises before the service is touched, so a synthesized template
    never refers to a revision that was not registered.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        topology: ServiceTopology,
        volume: VolumeHandle,
        container_path: str = DEFAULT_JENKINS_HOME_PATH,
        service_tag: str = DEFAULT_SERVICE_TAG,
        **kwargs
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        ConfigValidator.validate_absolute_path(container_path, "container_path")

        self.placeholder = describe_task_definition(topology.task_definition)
        self.descriptor = derive_descriptor(self.placeholder, volume, container_path)
        logger.info(
            "Derived task definition for family %s with %s mounted at %s",
            self.descriptor.family, volume.volume_name, container_path
        )

        self.registration = self._register(self.descriptor, service_tag)
        self.task_definition_arn = self.registration.get_response_field(TASK_DEFINITION_ARN_PATH)

        self.grants = self._grant(topology, volume)
        self._override(topology.service)

    def _register(self, descriptor: TaskDefinitionDescriptor, service_tag: str) -> cr.AwsCustomResource:
        register_call = cr.AwsSdkCall(
            service=REGISTER_TASK_DEFINITION_SERVICE,
            action=REGISTER_TASK_DEFINITION_ACTION,
            parameters=descriptor.to_sdk_parameters(),
            physical_resource_id=cr.PhysicalResourceId.from_response(TASK_DEFINITION_ARN_PATH),
            output_paths=[TASK_DEFINITION_ARN_PATH]
        )

        # No on_delete: registered revisions are kept
        registration = cr.AwsCustomResource(
            self,
            "CustomFargateTaskDefinition",
            on_create=register_call,
            on_update=register_call,
            policy=self.create_sdk_call_policy(REGISTER_TASK_DEFINITION_PERMISSIONS),
            install_latest_aws_sdk=False
        )
        Tags.of(registration).add("service", service_tag)

        logger.info("Registration of %s recorded", descriptor.family)
        return registration

    def _grant(self, topology: ServiceTopology, volume: VolumeHandle) -> list:
        AWSResourceValidator.validate_arn(
            self.descriptor.execution_role_arn, service="iam", parameter_name="execution_role_arn"
        )
        AWSResourceValidator.validate_arn(
            self.descriptor.task_role_arn, service="iam", parameter_name="task_role_arn"
        )

        task_definition = topology.task_definition
        grants = self.grant_pass_roles(
            self.registration.grant_principal,
            [task_definition.execution_role, task_definition.task_role],
            apply_before=[self.registration]
        )

        # Without NFS both ways the task times out mounting the file system
        self.allow_bidirectional_tcp(topology.service, volume.file_system, NFS_PORT, "NFS")

        logger.info("Pass-role grants and NFS rules recorded for %s", topology.service.node.path)
        return grants

    def _override(self, service: ecs.FargateService) -> None:
        cfn_service = service.node.default_child or service.node.try_find_child("Service")
        if not isinstance(cfn_service, ecs.CfnService):
            raise ResourceCreationError(
                "Fargate service has no CfnService child to override",
                resource_type="AWS::ECS::Service",
                resource_id=service.node.path
            )

        cfn_service.add_property_override("TaskDefinition", self.task_definition_arn)
        logger.info("Service %s now uses the registered task definition", service.node.path)
