"""Shared fixtures for the Jenkins stack tests."""

import pytest
import yaml
import aws_cdk as cdk
from aws_cdk import (
    aws_certificatemanager as acm,
    aws_ec2 as ec2,
    aws_ecs as ecs,
    aws_route53 as route53,
)

from helper.config import Config
from stacks.jenkins.environment import EnvironmentHandles
from stacks.jenkins.stack import JenkinsStack
from stacks.jenkins.service import ServiceSizing, ServiceTopologyBuilder
from stacks.jenkins.storage import PosixIdentity, VolumeProvisioner

TEST_ACCOUNT = "123456789012"
TEST_REGION = "eu-west-1"
TEST_ENV = cdk.Environment(account=TEST_ACCOUNT, region=TEST_REGION)
CERTIFICATE_ARN = "arn:aws:acm:eu-west-1:123456789012:certificate/11111111-2222-3333-4444-555555555555"
HOSTED_ZONE_ID = "Z0123456789ABC"


def _ssm_lookup_key(parameter_name):
    return f"ssm:account={TEST_ACCOUNT}:parameterName={parameter_name}:region={TEST_REGION}"


# Cached lookup results, as cdk.context.json would hold them
LOOKUP_CONTEXT = {
    _ssm_lookup_key("/com/benkhard/wildcard-certificate"): CERTIFICATE_ARN,
    _ssm_lookup_key("/com/benkhard/public-hosted-zone-id"): HOSTED_ZONE_ID,
}

BASE_CONFIG = {
    "ProjectName": "jenkins-dev",
    "AccountId": "123456789012",
    "RegionName": "eu-west-1",
    "UseDefaultVpc": True,
    "CertificateParameterName": "/com/benkhard/wildcard-certificate",
    "HostedZoneIdParameterName": "/com/benkhard/public-hosted-zone-id",
    "HostedZoneName": "benkhard.com",
    "DomainName": "jenkins.benkhard.com",
    "ClusterName": "jenkins-cluster",
    "ClusterArnParameterName": "/com/benkhard/platform-cluster-arn",
    "ClusterNameParameterName": "/com/benkhard/platform-cluster-name",
    "FileSystemName": "jenkins-fs",
    "AccessPointPath": "/jenkins",
    "PosixUid": 1000,
    "PosixGid": 1000,
    "AccessPointPermissions": "777",
    "ContainerImage": "jenkins/jenkins",
    "ContainerCpu": 256,
    "ContainerMemoryLimitMiB": 1024,
    "ContainerPort": 8080,
    "DesiredCount": 1,
}


@pytest.fixture
def config_data():
    """A fresh copy of the baseline configuration."""
    return dict(BASE_CONFIG)


@pytest.fixture
def write_config(tmp_path):
    """Write a config dict as YAML and load it through Config."""
    def _write(data, environment="test"):
        (tmp_path / f"{environment}.yaml").write_text(yaml.safe_dump(data), encoding="utf-8")
        return Config(environment, config_dir=tmp_path)
    return _write


@pytest.fixture
def config(write_config, config_data):
    return write_config(config_data)


@pytest.fixture
def app():
    return cdk.App(context=LOOKUP_CONTEXT)


@pytest.fixture
def stack(app):
    """Empty stack with a concrete environment for construct-level tests."""
    return cdk.Stack(app, "TestStack", env=TEST_ENV)


@pytest.fixture
def vpc(stack):
    return ec2.Vpc(stack, "Vpc", max_azs=2)


@pytest.fixture
def environment_handles(stack, vpc):
    certificate = acm.Certificate.from_certificate_arn(stack, "Certificate", CERTIFICATE_ARN)
    hosted_zone = route53.HostedZone.from_hosted_zone_attributes(
        stack, "Zone", hosted_zone_id=HOSTED_ZONE_ID, zone_name="example.com"
    )
    return EnvironmentHandles(vpc=vpc, certificate=certificate, hosted_zone=hosted_zone)


@pytest.fixture
def sizing():
    return ServiceSizing(
        image="jenkins/jenkins",
        cpu=256,
        memory_limit_mib=1024,
        container_port=8080,
        desired_count=1
    )


@pytest.fixture
def cluster(stack, vpc):
    return ecs.Cluster(stack, "Cluster", vpc=vpc)


@pytest.fixture
def topology(stack, cluster, environment_handles, sizing):
    builder = ServiceTopologyBuilder(
        stack,
        "Service",
        cluster=cluster,
        environment=environment_handles,
        domain_name="jenkins.example.com",
        sizing=sizing
    )
    return builder.topology


@pytest.fixture
def volume(stack, vpc):
    provisioner = VolumeProvisioner(
        stack,
        "Storage",
        vpc=vpc,
        file_system_name="jenkins-fs",
        access_point_path="/jenkins",
        identity=PosixIdentity(uid=1000, gid=1000, permissions="777")
    )
    return provisioner.handle


@pytest.fixture
def certificate_arn():
    return CERTIFICATE_ARN


@pytest.fixture
def make_jenkins_stack():
    """Build a JenkinsStack in its own app, as ``cdk synth`` would."""
    def _make(config):
        app = cdk.App(context=LOOKUP_CONTEXT)
        return JenkinsStack(app, "jenkins-dev-jenkins", config=config, env=TEST_ENV)
    return _make
