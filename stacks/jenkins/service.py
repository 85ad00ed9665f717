"""Load-balanced Fargate service for Jenkins."""

import logging
from dataclasses import dataclass
from typing import Optional

from aws_cdk import (
    Duration,
    aws_ecs as ecs,
    aws_ecs_patterns as ecs_patterns,
    aws_elasticloadbalancingv2 as elbv2,
    aws_route53 as route53,
)
from constructs import Construct

from stacks.common.constants import (
    DEFAULT_HEALTH_CHECK_GRACE_PERIOD_MINUTES,
    DEFAULT_HEALTH_CHECK_PATH,
)
from stacks.common.exceptions import ValidationError
from stacks.common.validators import ConfigValidator
from .environment import EnvironmentHandles

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServiceSizing:
    """Container image and Fargate task size."""

    image: str
    cpu: int
    memory_limit_mib: int
    container_port: int
    desired_count: int

    def __post_init__(self) -> None:
        if not self.image:
            raise ValidationError("Container image is required", parameter_name="image")
        ConfigValidator.validate_fargate_sizing(self.cpu, self.memory_limit_mib)
        ConfigValidator.validate_port_range(self.container_port)
        ConfigValidator.validate_desired_count(self.desired_count)


@dataclass(frozen=True)
class ServiceTopology:
    """
    Everything the load-balanced service pattern created.

    The service's task definition reference is overridden later; the other
    members are stable once built.
    """

    load_balancer: elbv2.ApplicationLoadBalancer
    listener: elbv2.ApplicationListener
    target_group: elbv2.ApplicationTargetGroup
    task_definition: ecs.FargateTaskDefinition
    service: ecs.FargateService
    dns_record: Optional[route53.ARecord]
    pattern: ecs_patterns.ApplicationLoadBalancedFargateService


class ServiceTopologyBuilder(Construct):
    """
    Builds the public HTTPS load balancer, DNS record and Fargate service.

    The task definition created here is a placeholder without the EFS mount;
    it has no knowledge of the volume.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        cluster: ecs.ICluster,
        environment: EnvironmentHandles,
        domain_name: str,
        sizing: ServiceSizing,
        health_check_path: str = DEFAULT_HEALTH_CHECK_PATH,
        health_check_grace_period_minutes: int = DEFAULT_HEALTH_CHECK_GRACE_PERIOD_MINUTES,
        **kwargs
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        ConfigValidator.validate_absolute_path(health_check_path, "health_check_path")

        pattern = ecs_patterns.ApplicationLoadBalancedFargateService(
            self,
            "JenkinsService",
            cluster=cluster,
            platform_version=ecs.FargatePlatformVersion.VERSION1_4,
            cpu=sizing.cpu,
            memory_limit_mib=sizing.memory_limit_mib,
            desired_count=sizing.desired_count,
            task_image_options=ecs_patterns.ApplicationLoadBalancedTaskImageOptions(
                image=ecs.ContainerImage.from_registry(sizing.image),
                container_port=sizing.container_port
            ),
            public_load_balancer=True,
            assign_public_ip=True,
            certificate=environment.certificate,
            health_check_grace_period=Duration.minutes(health_check_grace_period_minutes),
            domain_name=domain_name,
            domain_zone=environment.hosted_zone
        )

        pattern.target_group.configure_health_check(path=health_check_path)

        logger.info(
            "Service %s: %s (%s CPU / %s MiB) on port %s behind https://%s",
            construct_id, sizing.image, sizing.cpu, sizing.memory_limit_mib,
            sizing.container_port, domain_name
        )

        self.topology = ServiceTopology(
            load_balancer=pattern.load_balancer,
            listener=pattern.listener,
            target_group=pattern.target_group,
            task_definition=pattern.task_definition,
            service=pattern.service,
            dns_record=pattern.node.try_find_child("DNS"),
            pattern=pattern
        )
