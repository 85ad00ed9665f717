"""Mixin classes for CDK stacks and constructs."""

from .iam import IAMPolicyMixin
from .security import SecurityGroupMixin

__all__ = [
    "IAMPolicyMixin",
    "SecurityGroupMixin",
]
