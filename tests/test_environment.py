"""
Unit tests for the environment lookups.
"""

import pytest

from stacks.common.exceptions import StackConfigurationError
from stacks.jenkins.environment import EnvironmentResolver


def _resolver(stack, **overrides):
    kwargs = {
        "certificate_parameter_name": "/com/benkhard/wildcard-certificate",
        "hosted_zone_id_parameter_name": "/com/benkhard/public-hosted-zone-id",
        "hosted_zone_name": "benkhard.com",
    }
    kwargs.update(overrides)
    return EnvironmentResolver(stack, "Environment", **kwargs)


class TestEnvironmentResolver:
    """Test VPC, certificate and hosted zone resolution."""

    def test_resolves_all_handles(self, stack):
        handles = _resolver(stack).handles

        assert handles.vpc is not None
        assert handles.certificate.certificate_arn
        assert handles.hosted_zone.zone_name == "benkhard.com"

    def test_explicit_vpc_id(self, stack):
        handles = _resolver(stack, use_default_vpc=False, vpc_id="vpc-0123456789abcdef0").handles
        assert handles.vpc is not None

    def test_explicit_vpc_requires_id(self, stack):
        with pytest.raises(StackConfigurationError) as excinfo:
            _resolver(stack, use_default_vpc=False, vpc_id=None)
        assert excinfo.value.config_key == "VpcId"

    @pytest.mark.parametrize("argument,config_key", [
        ("certificate_parameter_name", "CertificateParameterName"),
        ("hosted_zone_id_parameter_name", "HostedZoneIdParameterName"),
        ("hosted_zone_name", "HostedZoneName"),
    ])
    def test_blank_inputs_name_the_config_key(self, stack, argument, config_key):
        with pytest.raises(StackConfigurationError) as excinfo:
            _resolver(stack, **{argument: "  "})
        assert excinfo.value.config_key == config_key
