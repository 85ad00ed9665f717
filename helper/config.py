import os
import re
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from yaml.loader import SafeLoader


class ProjectNameValidationError(Exception):
    """Raised when ProjectName validation fails."""
    pass


class Config:

    _environment = 'development'

    def __init__(self, environment, config_dir: Union[str, Path] = 'config') -> None:
        self._environment = environment
        self._config_dir = Path(config_dir)
        self.data: Dict[str, Any] = {}
        self.load()
        self._validate_project_name()

    @property
    def environment(self) -> str:
        return self._environment

    @property
    def path(self) -> Path:
        return self._config_dir / f'{self._environment}.yaml'

    def load(self) -> dict:
        with open(self.path, encoding='utf-8') as f:
            self.data = yaml.load(f, Loader=SafeLoader) or {}
        return self.data

    def get(self, key):
        return self.data[key]

    def _validate_project_name(self) -> None:
        """
        Validate ProjectName against the naming constraints of the stack.

        ProjectName prefixes the CloudFormation stack name and is used as the
        Project tag on every resource.

        Raises:
            ProjectNameValidationError: If ProjectName doesn't meet requirements
        """
        project_name = self.data.get('ProjectName')

        if not project_name:
            raise ProjectNameValidationError("ProjectName is required in configuration")

        if not isinstance(project_name, str):
            raise ProjectNameValidationError("ProjectName must be a string")

        project_name = project_name.strip()

        if not project_name:
            raise ProjectNameValidationError("ProjectName cannot be empty or whitespace only")

        # Stack name is "{ProjectName}-jenkins"; keep well under the 128 char limit
        MAX_LENGTH = 32
        if len(project_name) > MAX_LENGTH:
            raise ProjectNameValidationError(
                f"ProjectName must be {MAX_LENGTH} characters or less. "
                f"Current length: {len(project_name)}"
            )

        MIN_LENGTH = 3
        if len(project_name) < MIN_LENGTH:
            raise ProjectNameValidationError(
                f"ProjectName must be at least {MIN_LENGTH} characters long. "
                f"Current length: {len(project_name)}"
            )

        # CloudFormation stacks must start with a letter
        if not re.match(r'^[a-z]([a-z0-9-]*[a-z0-9])?$', project_name):
            raise ProjectNameValidationError(
                f"ProjectName '{project_name}' contains invalid characters. "
                f"Must use only lowercase letters (a-z), numbers (0-9), and hyphens (-). "
                f"Must start with a letter and end with a letter or number"
            )

        if '--' in project_name:
            raise ProjectNameValidationError(
                f"ProjectName '{project_name}' contains consecutive hyphens"
            )

    def get_validated_project_name(self) -> str:
        """
        Get the validated project name.

        Raises:
            ProjectNameValidationError: If validation fails
        """
        self._validate_project_name()
        return self.data['ProjectName'].strip()

    def get_account(self) -> Optional[str]:
        """Deploy target account; falls back to the CLI's default account."""
        account = self.data.get('AccountId') or os.environ.get('CDK_DEFAULT_ACCOUNT')
        return str(account) if account else None

    def get_region(self) -> Optional[str]:
        """Deploy target region; falls back to the CLI's default region."""
        return self.data.get('RegionName') or os.environ.get('CDK_DEFAULT_REGION')

    def get_environment_settings(self) -> Dict[str, Optional[str]]:
        """Account/region mapping accepted by the Stack ``env`` argument."""
        return {
            "account": self.get_account(),
            "region": self.get_region()
        }

    def is_cdk_nag_enabled(self) -> bool:
        """Check whether AwsSolutions checks should run during synth."""
        return bool(self.data.get('EnableCdkNag', False))
