"""
Stack base class for the Jenkins deployment.

Wraps ``helper.config.Config`` so that every missing or mistyped key turns
into a ``StackConfigurationError`` naming the key, and applies the tags every
resource of the project carries.
"""

import logging
from typing import Any, Dict, Optional, Type

import aws_cdk as cdk
from aws_cdk import Stack
from constructs import Construct

from helper.config import Config
from .exceptions import StackConfigurationError

logger = logging.getLogger(__name__)

_MISSING = object()


class BaseStack(Stack):
    """
    Stack that reads its settings from a ``Config``.

    Subclasses read keys with ``get_required_config`` and
    ``get_optional_config`` and never touch the YAML data directly.
    """

    def __init__(self,
                 scope: Construct,
                 construct_id: str,
                 config: Config,
                 **kwargs) -> None:
        """
        Args:
            scope: CDK scope
            construct_id: Stack ID
            config: Loaded environment configuration
            **kwargs: Passed through to ``Stack``

        Raises:
            StackConfigurationError: If ``config`` is not a ``Config``
        """
        super().__init__(scope, construct_id, **kwargs)
        if not isinstance(config, Config):
            raise StackConfigurationError(
                f"Expected a Config instance, got {type(config).__name__}",
                config_key="config"
            )
        self.config = config

    def _lookup(self, key: str) -> Any:
        try:
            return self.config.get(key)
        except KeyError:
            return _MISSING

    def _check_type(self, key: str, value: Any, expected_type: Optional[Type]) -> Any:
        # bool is an int subclass; a YAML "true" must not pass as a CPU value
        if expected_type is None:
            return value
        if isinstance(value, expected_type) and not (expected_type is int and isinstance(value, bool)):
            return value
        raise StackConfigurationError(
            f"Configuration key '{key}' must be of type {expected_type.__name__}, "
            f"got {type(value).__name__} ({value!r})",
            config_key=key
        )

    def get_required_config(self, key: str, expected_type: Optional[Type] = None) -> Any:
        """
        Read a key that must be present and non-blank.

        Raises:
            StackConfigurationError: If the key is absent, null, blank or of
                the wrong type
        """
        value = self._lookup(key)
        if value is _MISSING:
            raise StackConfigurationError(
                f"Required configuration key '{key}' is missing from {self.config.path}",
                config_key=key
            )
        if value is None or (isinstance(value, str) and not value.strip()):
            raise StackConfigurationError(
                f"Required configuration key '{key}' is empty in {self.config.path}",
                config_key=key
            )
        return self._check_type(key, value, expected_type)

    def get_optional_config(self, key: str, default_value: Any = None,
                            expected_type: Optional[Type] = None) -> Any:
        """Read a key, falling back to ``default_value`` when absent or null."""
        value = self._lookup(key)
        if value is _MISSING or value is None:
            return default_value
        return self._check_type(key, value, expected_type)

    @property
    def common_tags(self) -> Dict[str, str]:
        """Tags every resource of the project carries."""
        return {
            "Environment": self.config.environment,
            "Project": self.config.get_validated_project_name(),
            "ManagedBy": "CDK",
        }

    def add_common_tags(self, resource: Any) -> None:
        """Tag ``resource`` and everything below it with ``common_tags``."""
        tags = self.common_tags
        for key, value in tags.items():
            cdk.Tags.of(resource).add(key, str(value))
        logger.debug("Tagged %s with %s", resource.node.path, tags)
