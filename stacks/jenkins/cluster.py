"""ECS cluster for the Jenkins service, published through SSM."""

import logging
from dataclasses import dataclass

from aws_cdk import (
    aws_ec2 as ec2,
    aws_ecs as ecs,
    aws_ssm as ssm,
)
from constructs import Construct

from stacks.common.constants import (
    CLUSTER_ARN_PARAMETER_DESCRIPTION,
    CLUSTER_NAME_PARAMETER_DESCRIPTION,
)
from stacks.common.validators import AWSResourceValidator, ConfigValidator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClusterHandle:
    cluster: ecs.Cluster
    arn_parameter: ssm.StringParameter
    name_parameter: ssm.StringParameter


class ClusterProvisioner(Construct):
    """
    Creates the named ECS cluster and publishes its ARN and name.

    Other stacks discover the cluster through the two SSM parameters instead
    of cross-stack exports.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        vpc: ec2.IVpc,
        cluster_name: str,
        arn_parameter_name: str,
        name_parameter_name: str,
        **kwargs
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        AWSResourceValidator.validate_vpc(vpc)
        ConfigValidator.validate_resource_name(cluster_name)
        ConfigValidator.validate_parameter_name(arn_parameter_name)
        ConfigValidator.validate_parameter_name(name_parameter_name)

        cluster = ecs.Cluster(
            self,
            "PlatformCluster",
            vpc=vpc,
            cluster_name=cluster_name
        )

        arn_parameter = ssm.StringParameter(
            self,
            "PlatformClusterArnSSMParameter",
            parameter_name=arn_parameter_name,
            description=CLUSTER_ARN_PARAMETER_DESCRIPTION,
            string_value=cluster.cluster_arn
        )

        name_parameter = ssm.StringParameter(
            self,
            "PlatformClusterNameSSMParameter",
            parameter_name=name_parameter_name,
            description=CLUSTER_NAME_PARAMETER_DESCRIPTION,
            string_value=cluster.cluster_name
        )

        logger.info(
            "Cluster %s published at %s and %s",
            cluster_name, arn_parameter_name, name_parameter_name
        )

        self.handle = ClusterHandle(
            cluster=cluster,
            arn_parameter=arn_parameter,
            name_parameter=name_parameter
        )
