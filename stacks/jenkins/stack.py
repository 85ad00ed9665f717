"""
Jenkins Stack.

Runs Jenkins on ECS Fargate with JENKINS_HOME on EFS behind a public HTTPS
load balancer. The service pattern generates a task definition without the
EFS volume; the override coordinator registers the corrected revision and
repoints the service at it.
"""

import logging

from aws_cdk import CfnOutput
from constructs import Construct

from helper.config import Config
from stacks.common.base import BaseStack
from stacks.common.constants import (
    DEFAULT_ACCESS_POINT_PATH,
    DEFAULT_ACCESS_POINT_PERMISSIONS,
    DEFAULT_CLUSTER_NAME,
    DEFAULT_CONTAINER_IMAGE,
    DEFAULT_CONTAINER_PORT,
    DEFAULT_CPU,
    DEFAULT_DESIRED_COUNT,
    DEFAULT_FILE_SYSTEM_NAME,
    DEFAULT_HEALTH_CHECK_GRACE_PERIOD_MINUTES,
    DEFAULT_HEALTH_CHECK_PATH,
    DEFAULT_JENKINS_HOME_PATH,
    DEFAULT_MEMORY_LIMIT_MIB,
    DEFAULT_POSIX_GID,
    DEFAULT_POSIX_UID,
    DEFAULT_SERVICE_TAG,
    DEFAULT_USE_DEFAULT_VPC,
    STACK_DESCRIPTION,
)
from .cluster import ClusterProvisioner
from .environment import EnvironmentResolver
from .service import ServiceSizing, ServiceTopologyBuilder
from .storage import PosixIdentity, VolumeProvisioner
from .task_definition import TaskDefinitionOverrideCoordinator

logger = logging.getLogger(__name__)


class JenkinsStack(BaseStack):
    """Stack for the Jenkins service, its cluster and its storage."""

    def __init__(self,
                 scope: Construct,
                 construct_id: str,
                 config: Config,
                 **kwargs) -> None:
        """
        Initialize Jenkins Stack.

        Args:
            scope: CDK scope
            construct_id: Stack ID
            config: Configuration object
            **kwargs: Additional stack arguments (``env`` must name an account
                and region, the lookups depend on it)

        Raises:
            StackConfigurationError: If a required configuration key is missing
            ValidationError: If a configured value is invalid
        """
        kwargs.setdefault('description', STACK_DESCRIPTION)
        super().__init__(scope, construct_id, config, **kwargs)

        domain_name = self.get_required_config('DomainName')

        # Read-only lookups
        self.environment_resolver = EnvironmentResolver(
            self,
            "Environment",
            certificate_parameter_name=self.get_required_config('CertificateParameterName'),
            hosted_zone_id_parameter_name=self.get_required_config('HostedZoneIdParameterName'),
            hosted_zone_name=self.get_required_config('HostedZoneName'),
            use_default_vpc=self.get_optional_config('UseDefaultVpc', DEFAULT_USE_DEFAULT_VPC, bool),
            vpc_id=self.get_optional_config('VpcId', None, str)
        )
        handles = self.environment_resolver.handles

        self.cluster_provisioner = ClusterProvisioner(
            self,
            "Cluster",
            vpc=handles.vpc,
            cluster_name=self.get_optional_config('ClusterName', DEFAULT_CLUSTER_NAME),
            arn_parameter_name=self.get_required_config('ClusterArnParameterName'),
            name_parameter_name=self.get_required_config('ClusterNameParameterName')
        )

        self.volume_provisioner = VolumeProvisioner(
            self,
            "Storage",
            vpc=handles.vpc,
            file_system_name=self.get_optional_config('FileSystemName', DEFAULT_FILE_SYSTEM_NAME),
            access_point_path=self.get_optional_config('AccessPointPath', DEFAULT_ACCESS_POINT_PATH),
            identity=PosixIdentity(
                uid=self.get_optional_config('PosixUid', DEFAULT_POSIX_UID, int),
                gid=self.get_optional_config('PosixGid', DEFAULT_POSIX_GID, int),
                permissions=str(self.get_optional_config('AccessPointPermissions',
                                                         DEFAULT_ACCESS_POINT_PERMISSIONS))
            )
        )

        self.service_builder = ServiceTopologyBuilder(
            self,
            "Service",
            cluster=self.cluster_provisioner.handle.cluster,
            environment=handles,
            domain_name=domain_name,
            sizing=ServiceSizing(
                image=self.get_optional_config('ContainerImage', DEFAULT_CONTAINER_IMAGE),
                cpu=self.get_optional_config('ContainerCpu', DEFAULT_CPU, int),
                memory_limit_mib=self.get_optional_config('ContainerMemoryLimitMiB', DEFAULT_MEMORY_LIMIT_MIB, int),
                container_port=self.get_optional_config('ContainerPort', DEFAULT_CONTAINER_PORT, int),
                desired_count=self.get_optional_config('DesiredCount', DEFAULT_DESIRED_COUNT, int)
            ),
            health_check_path=self.get_optional_config('HealthCheckPath', DEFAULT_HEALTH_CHECK_PATH),
            health_check_grace_period_minutes=self.get_optional_config(
                'HealthCheckGracePeriodMinutes', DEFAULT_HEALTH_CHECK_GRACE_PERIOD_MINUTES, int
            )
        )

        # Must come last: needs the service and the file system
        self.coordinator = TaskDefinitionOverrideCoordinator(
            self,
            "TaskDefinitionOverride",
            topology=self.service_builder.topology,
            volume=self.volume_provisioner.handle,
            container_path=self.get_optional_config('JenkinsHomePath', DEFAULT_JENKINS_HOME_PATH),
            service_tag=self.get_optional_config('ServiceTag', DEFAULT_SERVICE_TAG)
        )

        self.add_common_tags(self)
        self._create_outputs(domain_name)
        logger.info("Jenkins stack %s defined", construct_id)

    def _create_outputs(self, domain_name: str) -> None:
        cluster_handle = self.cluster_provisioner.handle
        topology = self.service_builder.topology

        CfnOutput(self, "ServiceURL",
                  value=f"https://{domain_name}",
                  description="Jenkins URL")
        CfnOutput(self, "ClusterName",
                  value=cluster_handle.cluster.cluster_name,
                  description="ECS cluster running Jenkins")
        CfnOutput(self, "ClusterArnParameterName",
                  value=cluster_handle.arn_parameter.parameter_name,
                  description="SSM parameter holding the cluster ARN")
        CfnOutput(self, "ClusterNameParameterName",
                  value=cluster_handle.name_parameter.parameter_name,
                  description="SSM parameter holding the cluster name")
        CfnOutput(self, "ServiceName",
                  value=topology.service.service_name,
                  description="Jenkins Fargate service")
        CfnOutput(self, "FileSystemId",
                  value=self.volume_provisioner.handle.file_system.file_system_id,
                  description="EFS file system holding JENKINS_HOME")
        CfnOutput(self, "PlaceholderTaskDefinitionArn",
                  value=topology.task_definition.task_definition_arn,
                  description="Task definition generated by the service pattern, without the EFS mount")
        CfnOutput(self, "RegisteredTaskDefinitionArn",
                  value=self.coordinator.task_definition_arn,
                  description="Task definition revision the service runs")
