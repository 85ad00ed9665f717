"""Validation utilities for the Jenkins stacks."""

import re
from typing import Any, Optional

import aws_cdk as cdk
from aws_cdk import aws_ec2 as ec2

from .constants import FARGATE_MEMORY_BY_CPU
from .exceptions import ValidationError


def _is_token(value: Any) -> bool:
    """Return True for unresolved CDK tokens (CloudFormation references)."""
    return isinstance(value, str) and cdk.Token.is_unresolved(value)


class ConfigValidator:
    """Utility class for validating configuration parameters."""

    @staticmethod
    def validate_port_range(port: int) -> None:
        """
        Validate that port number is within valid range.

        Raises:
            ValidationError: If port is outside valid range
        """
        if not isinstance(port, int) or not 1 <= port <= 65535:
            raise ValidationError(
                f"Port must be between 1 and 65535, got {port}",
                parameter_name="port",
                provided_value=str(port)
            )

    @staticmethod
    def validate_resource_name(name: str, max_length: int = 255) -> None:
        """
        Validate an AWS resource name (ECS cluster, EFS Name tag).

        Args:
            name: Resource name to validate
            max_length: Maximum allowed length

        Raises:
            ValidationError: If name format is invalid
        """
        if _is_token(name):
            return

        if not name:
            raise ValidationError(
                "Resource name cannot be empty",
                parameter_name="name",
                provided_value=name
            )

        if len(name) > max_length:
            raise ValidationError(
                f"Resource name too long (max {max_length}): {name}",
                parameter_name="name",
                provided_value=name
            )

        if not re.match(r'^[a-zA-Z0-9-_]+$', name):
            raise ValidationError(
                f"Invalid resource name format: {name}. "
                f"Only alphanumeric characters, hyphens, and underscores allowed",
                parameter_name="name",
                provided_value=name
            )

    @staticmethod
    def validate_absolute_path(path: str, parameter_name: str = "path") -> None:
        """
        Validate a POSIX path used for mounts, access points and health checks.

        Raises:
            ValidationError: If the path is empty or relative
        """
        if not path or not path.startswith('/'):
            raise ValidationError(
                f"Path must start with '/', got {path!r}",
                parameter_name=parameter_name,
                provided_value=str(path)
            )

    @staticmethod
    def validate_parameter_name(name: str) -> None:
        """
        Validate an SSM parameter name.

        Hierarchical names must be fully qualified ("/a/b"); flat names may
        not contain slashes.

        Raises:
            ValidationError: If the name is not a valid parameter name
        """
        if _is_token(name):
            return

        if not name or len(name) > 2048:
            raise ValidationError(
                f"Invalid SSM parameter name length: {name!r}",
                parameter_name="parameter_name",
                provided_value=str(name)
            )

        if not re.match(r'^[a-zA-Z0-9_.\-/]+$', name):
            raise ValidationError(
                f"Invalid SSM parameter name: {name}",
                parameter_name="parameter_name",
                provided_value=name
            )

        if '/' in name and not name.startswith('/'):
            raise ValidationError(
                f"Hierarchical SSM parameter names must begin with '/': {name}",
                parameter_name="parameter_name",
                provided_value=name
            )

    @staticmethod
    def validate_fargate_sizing(cpu: int, memory_limit_mib: int) -> None:
        """
        Validate a Fargate CPU/memory combination.

        Raises:
            ValidationError: If the combination is not a supported task size
        """
        allowed_memory = FARGATE_MEMORY_BY_CPU.get(cpu)
        if allowed_memory is None:
            raise ValidationError(
                f"Unsupported Fargate CPU value {cpu}; "
                f"expected one of {sorted(FARGATE_MEMORY_BY_CPU)}",
                parameter_name="cpu",
                provided_value=str(cpu)
            )

        if memory_limit_mib not in allowed_memory:
            raise ValidationError(
                f"Memory {memory_limit_mib} MiB is not valid for {cpu} CPU units; "
                f"allowed values are {list(allowed_memory)}",
                parameter_name="memory_limit_mib",
                provided_value=str(memory_limit_mib)
            )

    @staticmethod
    def validate_desired_count(desired_count: int) -> None:
        """Validate the number of tasks the service keeps running."""
        if not isinstance(desired_count, int) or desired_count < 0:
            raise ValidationError(
                f"Desired count must be a non-negative integer, got {desired_count}",
                parameter_name="desired_count",
                provided_value=str(desired_count)
            )

    @staticmethod
    def validate_posix_permissions(permissions: str) -> None:
        """
        Validate octal permission bits for an EFS access point root.

        Raises:
            ValidationError: If the value is not a 3 or 4 digit octal string
        """
        if not isinstance(permissions, str) or not re.match(r'^[0-7]{3,4}$', permissions):
            raise ValidationError(
                f"Permissions must be an octal string such as '755', got {permissions!r}",
                parameter_name="permissions",
                provided_value=str(permissions)
            )

    @staticmethod
    def validate_posix_id(value: int, parameter_name: str) -> None:
        """Validate a POSIX uid or gid."""
        if not isinstance(value, int) or not 0 <= value <= 4294967295:
            raise ValidationError(
                f"{parameter_name} must be an integer between 0 and 4294967295, got {value}",
                parameter_name=parameter_name,
                provided_value=str(value)
            )


class AWSResourceValidator:
    """Utility class for validating AWS resource parameters."""

    @staticmethod
    def validate_vpc(vpc: ec2.IVpc) -> None:
        """
        Validate VPC resource.

        Args:
            vpc: VPC to validate (can be Vpc or imported via IVpc)

        Raises:
            ValidationError: If VPC is invalid
        """
        # IVpc is a Protocol and can't be used with isinstance()
        if not hasattr(vpc, 'vpc_id'):
            raise ValidationError(
                f"Expected VPC instance with vpc_id attribute, got {type(vpc)}",
                parameter_name="vpc",
                provided_value=str(type(vpc))
            )

    @staticmethod
    def validate_arn(arn: Optional[str], service: Optional[str] = None,
                     parameter_name: str = "arn") -> None:
        """
        Validate AWS ARN format.

        Args:
            arn: ARN to validate
            service: Expected AWS service (optional)
            parameter_name: Name reported when validation fails

        Raises:
            ValidationError: If ARN is missing or its format is invalid
        """
        if not arn:
            raise ValidationError(
                f"Missing ARN for {parameter_name}",
                parameter_name=parameter_name,
                provided_value=str(arn)
            )

        if _is_token(arn):
            return

        arn_pattern = re.compile(
            r'^arn:aws[a-zA-Z0-9-]*:[a-zA-Z0-9-]+:'
            r'[a-zA-Z0-9-]*:[0-9]*:[a-zA-Z0-9-/._:]+$'
        )

        if not arn_pattern.match(arn):
            raise ValidationError(
                f"Invalid ARN format: {arn}",
                parameter_name=parameter_name,
                provided_value=arn
            )

        if service and arn.split(':')[2] != service:
            raise ValidationError(
                f"Expected {service} service ARN, got {arn.split(':')[2]}",
                parameter_name=parameter_name,
                provided_value=arn
            )
