"""
Unit tests for the load-balanced Fargate service.
"""

import pytest
from aws_cdk.assertions import Match, Template

from stacks.common.exceptions import ValidationError
from stacks.jenkins.service import ServiceSizing, ServiceTopologyBuilder


class TestServiceSizing:
    """Test Fargate sizing validation."""

    @pytest.mark.parametrize("overrides", [
        {"cpu": 256, "memory_limit_mib": 4096},
        {"container_port": 0},
        {"desired_count": -1},
        {"image": ""},
    ])
    def test_invalid_sizing(self, overrides):
        values = {
            "image": "jenkins/jenkins",
            "cpu": 256,
            "memory_limit_mib": 1024,
            "container_port": 8080,
            "desired_count": 1,
        }
        values.update(overrides)
        with pytest.raises(ValidationError):
            ServiceSizing(**values)


class TestServiceTopologyBuilder:
    """Test the resources generated through the service pattern."""

    def test_public_https_load_balancer(self, stack, topology, certificate_arn):
        template = Template.from_stack(stack)

        template.has_resource_properties("AWS::ElasticLoadBalancingV2::LoadBalancer", {
            "Scheme": "internet-facing"
        })
        template.has_resource_properties("AWS::ElasticLoadBalancingV2::Listener", {
            "Protocol": "HTTPS",
            "Port": 443,
            "Certificates": [{"CertificateArn": certificate_arn}]
        })

    def test_health_check_path(self, stack, topology):
        Template.from_stack(stack).has_resource_properties(
            "AWS::ElasticLoadBalancingV2::TargetGroup", {
                "HealthCheckPath": "/login"
            }
        )

    def test_fargate_service_settings(self, stack, topology):
        Template.from_stack(stack).has_resource_properties("AWS::ECS::Service", {
            "LaunchType": "FARGATE",
            "PlatformVersion": "1.4.0",
            "DesiredCount": 1,
            "HealthCheckGracePeriodSeconds": 300,
            "NetworkConfiguration": Match.object_like({
                "AwsvpcConfiguration": Match.object_like({"AssignPublicIp": "ENABLED"})
            })
        })

    def test_placeholder_task_definition(self, stack, topology):
        Template.from_stack(stack).has_resource_properties("AWS::ECS::TaskDefinition", {
            "Cpu": "256",
            "Memory": "1024",
            "NetworkMode": "awsvpc",
            "RequiresCompatibilities": ["FARGATE"],
            "ContainerDefinitions": [Match.object_like({
                "Image": "jenkins/jenkins",
                "PortMappings": Match.array_with([Match.object_like({"ContainerPort": 8080})])
            })]
        })

    def test_dns_record(self, stack, topology):
        assert topology.dns_record is not None
        Template.from_stack(stack).has_resource_properties("AWS::Route53::RecordSet", {
            "Name": "jenkins.example.com.",
            "Type": "A"
        })

    def test_topology_members(self, topology):
        pattern = topology.pattern
        assert topology.service.node.path == pattern.service.node.path
        assert topology.task_definition.node.path == pattern.task_definition.node.path
        assert topology.listener.node.path == pattern.listener.node.path

    def test_relative_health_check_path(self, stack, cluster, environment_handles, sizing):
        with pytest.raises(ValidationError):
            ServiceTopologyBuilder(
                stack,
                "Service",
                cluster=cluster,
                environment=environment_handles,
                domain_name="jenkins.example.com",
                sizing=sizing,
                health_check_path="login"
            )
