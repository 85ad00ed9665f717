"""
CDK stack modules for Jenkins on Fargate.

The Jenkins stack composes the network lookups, ECS cluster, EFS volume,
load-balanced service and the task definition override into one
CloudFormation stack.
"""

from .jenkins.stack import JenkinsStack

# Import common components
from .common import (
    BaseStack,
    IAMPolicyMixin,
    SecurityGroupMixin,
    StackConfigurationError,
    ResourceCreationError,
    ValidationError,
    ConfigValidator,
    AWSResourceValidator
)

__all__ = [
    # Stack classes
    "JenkinsStack",

    # Base classes
    "BaseStack",

    # Mixins
    "IAMPolicyMixin",
    "SecurityGroupMixin",

    # Exceptions
    "StackConfigurationError",
    "ResourceCreationError",
    "ValidationError",

    # Validators
    "ConfigValidator",
    "AWSResourceValidator"
]
