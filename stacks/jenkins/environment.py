"""
Network, certificate and DNS lookups for the Jenkins stack.

Everything here is read-only: the VPC, the wildcard certificate and the
public hosted zone already exist and are only referenced.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from aws_cdk import (
    aws_certificatemanager as acm,
    aws_ec2 as ec2,
    aws_route53 as route53,
    aws_ssm as ssm,
)
from constructs import Construct

from stacks.common.exceptions import StackConfigurationError
from stacks.common.validators import ConfigValidator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnvironmentHandles:
    """Resolved environment the rest of the stack is built in."""

    vpc: ec2.IVpc
    certificate: acm.ICertificate
    hosted_zone: route53.IHostedZone


class EnvironmentResolver(Construct):
    """
    Resolves the VPC, certificate and hosted zone into ``EnvironmentHandles``.

    The certificate ARN and hosted zone id are read from SSM parameters at
    synth time, so the stack needs a concrete account and region.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        certificate_parameter_name: str,
        hosted_zone_id_parameter_name: str,
        hosted_zone_name: str,
        use_default_vpc: bool = True,
        vpc_id: Optional[str] = None,
        **kwargs
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        self._require(certificate_parameter_name, "CertificateParameterName")
        self._require(hosted_zone_id_parameter_name, "HostedZoneIdParameterName")
        self._require(hosted_zone_name, "HostedZoneName")
        ConfigValidator.validate_parameter_name(certificate_parameter_name)
        ConfigValidator.validate_parameter_name(hosted_zone_id_parameter_name)

        vpc = self._lookup_vpc(use_default_vpc, vpc_id)
        certificate = self._lookup_certificate(certificate_parameter_name)
        hosted_zone = self._lookup_hosted_zone(hosted_zone_id_parameter_name, hosted_zone_name)

        self.handles = EnvironmentHandles(
            vpc=vpc,
            certificate=certificate,
            hosted_zone=hosted_zone
        )

    @staticmethod
    def _require(value: Optional[str], config_key: str) -> None:
        if value is None or (isinstance(value, str) and not value.strip()):
            raise StackConfigurationError(
                f"'{config_key}' is required to resolve the deployment environment",
                config_key=config_key
            )

    def _lookup_vpc(self, use_default_vpc: bool, vpc_id: Optional[str]) -> ec2.IVpc:
        if use_default_vpc:
            logger.info("Looking up the default VPC")
            return ec2.Vpc.from_lookup(self, "DefaultVPC", is_default=True)

        self._require(vpc_id, "VpcId")
        logger.info("Looking up VPC %s", vpc_id)
        return ec2.Vpc.from_lookup(self, "VPC", vpc_id=vpc_id)

    def _lookup_certificate(self, parameter_name: str) -> acm.ICertificate:
        certificate_arn = ssm.StringParameter.value_from_lookup(self, parameter_name)
        logger.info("Certificate ARN read from %s", parameter_name)
        return acm.Certificate.from_certificate_arn(self, "WildcardCertificate", certificate_arn)

    def _lookup_hosted_zone(self, parameter_name: str, zone_name: str) -> route53.IHostedZone:
        hosted_zone_id = ssm.StringParameter.value_from_lookup(self, parameter_name)
        logger.info("Hosted zone id for %s read from %s", zone_name, parameter_name)
        return route53.HostedZone.from_hosted_zone_attributes(
            self,
            "PublicHostedZone",
            hosted_zone_id=hosted_zone_id,
            zone_name=zone_name
        )
