"""
Common CDK stack components and utilities.

Shared by the Jenkins stack and its constructs:
- Base stack with configuration access
- Grant and connection mixins
- Exceptions, validators and defaults
"""

# Import base classes
from .base import BaseStack

# Import mixins
from .mixins import (
    IAMPolicyMixin,
    SecurityGroupMixin
)

# Import exceptions
from .exceptions import (
    ProvisioningError,
    StackConfigurationError,
    ResourceCreationError,
    ValidationError
)

# Import validators
from .validators import (
    ConfigValidator,
    AWSResourceValidator
)

# Import constants
from .constants import *

__all__ = [
    # Base classes
    "BaseStack",

    # Mixins
    "IAMPolicyMixin",
    "SecurityGroupMixin",

    # Exceptions
    "ProvisioningError",
    "StackConfigurationError",
    "ResourceCreationError",
    "ValidationError",

    # Validators
    "ConfigValidator",
    "AWSResourceValidator",

    # Constants (imported from constants module)
]
