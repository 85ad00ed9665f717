"""Security group mixin for CDK constructs."""

from typing import Optional

from aws_cdk import aws_ec2 as ec2

from ..validators import ConfigValidator


class SecurityGroupMixin:
    """
    Mixin class providing connection rules between constructs.

    The rules are added through the ``connections`` of the constructs, so the
    security groups owned by L2 constructs (services, file systems) are
    reused instead of creating new groups.
    """

    def allow_bidirectional_tcp(self,
                                first: ec2.IConnectable,
                                second: ec2.IConnectable,
                                port: int,
                                description: Optional[str] = None) -> None:
        """
        Open a TCP port in both directions between two connectables.

        Args:
            first: Construct whose connections receive both rules
            second: The other side of the connection
            port: TCP port to open
            description: Optional description prefix for the rules
        """
        ConfigValidator.validate_port_range(port)
        label = description or f"TCP {port}"

        first.connections.allow_from(
            second,
            ec2.Port.tcp(port),
            f"{label} inbound"
        )
        first.connections.allow_to(
            second,
            ec2.Port.tcp(port),
            f"{label} outbound"
        )

