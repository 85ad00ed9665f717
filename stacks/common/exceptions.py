"""Custom exceptions for the Jenkins provisioning stacks."""

from typing import Optional


class ProvisioningError(Exception):
    """
    Base class for every error raised while building the provisioning graph.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)


class StackConfigurationError(ProvisioningError):
    """
    Exception raised when stack configuration is missing or invalid.

    Configuration errors are terminal: the operator has to fix the
    configuration file or the referenced parameter before deploying again.

    Attributes:
        message: Human-readable error description
        config_key: The configuration key that caused the error
    """

    def __init__(self, message: str, config_key: Optional[str] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Human-readable error description
            config_key: The configuration key that caused the error
        """
        self.config_key = config_key
        super().__init__(message)


class ResourceCreationError(ProvisioningError):
    """
    Exception raised when an AWS resource cannot be defined.

    Attributes:
        message: Human-readable error description
        resource_type: The AWS resource type that failed to create
        resource_id: Construct path or logical name of the failing resource
    """

    def __init__(
        self,
        message: str,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Human-readable error description
            resource_type: The AWS resource type that failed to create
            resource_id: Construct path or logical name of the failing resource
        """
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(message)


class ValidationError(ProvisioningError):
    """
    Exception raised when parameter validation fails.

    Attributes:
        message: Human-readable error description
        parameter_name: The parameter that failed validation
        provided_value: The value that was provided
    """

    def __init__(
        self,
        message: str,
        parameter_name: Optional[str] = None,
        provided_value: Optional[str] = None
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Human-readable error description
            parameter_name: The parameter that failed validation
            provided_value: The value that was provided
        """
        self.parameter_name = parameter_name
        self.provided_value = provided_value
        super().__init__(message)
