"""IAM policy mixin for CDK constructs."""

from typing import List, Optional, Sequence

from aws_cdk import aws_iam as iam
from aws_cdk import custom_resources as cr
from constructs import IConstruct

from ..exceptions import ValidationError


class IAMPolicyMixin:
    """
    Mixin class providing common IAM grant functionality.

    The methods only touch the roles and principals passed in, so the mixin
    works on stacks and on plain constructs alike.
    """

    def grant_pass_roles(self,
                         grantee: iam.IGrantable,
                         roles: Sequence[Optional[iam.IRole]],
                         apply_before: Sequence[IConstruct] = ()) -> List[iam.Grant]:
        """
        Allow a principal to hand the given roles to an AWS service.

        Registering a task definition that references an execution or task
        role requires ``iam:PassRole`` on both roles for the caller.

        Args:
            grantee: Principal that performs the call needing the roles
            roles: Roles the principal must be able to pass
            apply_before: Constructs that must not deploy before the grants

        Returns:
            One grant per role

        Raises:
            ValidationError: If any role is missing
        """
        grants = []
        for index, role in enumerate(roles):
            if role is None:
                raise ValidationError(
                    f"Cannot grant iam:PassRole on a missing role (position {index})",
                    parameter_name="roles",
                    provided_value=str(list(roles))
                )
            grant = role.grant_pass_role(grantee)
            if apply_before:
                grant.apply_before(*apply_before)
            grants.append(grant)
        return grants

    def create_sdk_call_policy(self, actions: Sequence[str] = ()) -> cr.AwsCustomResourcePolicy:
        """
        Build the policy attached to an ``AwsCustomResource`` provider.

        Without ``actions`` they are derived from the SDK calls. Calls that
        need more than their own action (tagging on create, for one) list
        every action explicitly. Resources are ``*`` either way.
        """
        if actions:
            return cr.AwsCustomResourcePolicy.from_statements([
                iam.PolicyStatement(
                    actions=list(actions),
                    resources=cr.AwsCustomResourcePolicy.ANY_RESOURCE
                )
            ])
        return cr.AwsCustomResourcePolicy.from_sdk_calls(
            resources=cr.AwsCustomResourcePolicy.ANY_RESOURCE
        )
