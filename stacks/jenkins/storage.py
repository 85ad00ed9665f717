"""
Durable EFS storage for JENKINS_HOME.

The file system outlives service updates and stack teardown; the access
point pins every client to one POSIX identity and one directory.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict

from aws_cdk import (
    Annotations,
    RemovalPolicy,
    aws_ec2 as ec2,
    aws_efs as efs,
)
from constructs import Construct

from stacks.common.constants import (
    EFS_VOLUME_NAME,
    EFS_VOLUME_ROOT_DIRECTORY,
)
from stacks.common.validators import AWSResourceValidator, ConfigValidator

logger = logging.getLogger(__name__)

ACCESS_POINT_REPLACEMENT_WARNING_ID = "jenkins:AccessPointReplacement"


@dataclass(frozen=True)
class PosixIdentity:
    """Owner and permission bits applied to the access point root."""

    uid: int
    gid: int
    permissions: str

    def __post_init__(self) -> None:
        ConfigValidator.validate_posix_id(self.uid, "uid")
        ConfigValidator.validate_posix_id(self.gid, "gid")
        ConfigValidator.validate_posix_permissions(self.permissions)


@dataclass(frozen=True)
class AccessPointHandle:
    access_point: efs.AccessPoint
    path: str
    identity: PosixIdentity


@dataclass(frozen=True)
class VolumeHandle:
    """File system, access point and the task-definition volume name."""

    file_system: efs.FileSystem
    access_point: AccessPointHandle
    volume_name: str = EFS_VOLUME_NAME

    def to_volume_configuration(self) -> Dict[str, Any]:
        """Render the ``volumes`` entry of a RegisterTaskDefinition request."""
        return {
            "name": self.volume_name,
            "efsVolumeConfiguration": {
                "fileSystemId": self.file_system.file_system_id,
                "rootDirectory": EFS_VOLUME_ROOT_DIRECTORY,
                "transitEncryption": "ENABLED",
                "authorizationConfig": {
                    "accessPointId": self.access_point.access_point.access_point_id
                }
            }
        }


class VolumeProvisioner(Construct):
    """Creates the encrypted file system and its single access point."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        vpc: ec2.IVpc,
        file_system_name: str,
        access_point_path: str,
        identity: PosixIdentity,
        **kwargs
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        AWSResourceValidator.validate_vpc(vpc)
        ConfigValidator.validate_resource_name(file_system_name)
        ConfigValidator.validate_absolute_path(access_point_path, "access_point_path")

        file_system = efs.FileSystem(
            self,
            "JenkinsEfsFileSystem",
            vpc=vpc,
            file_system_name=file_system_name,
            encrypted=True,
            performance_mode=efs.PerformanceMode.GENERAL_PURPOSE,
            removal_policy=RemovalPolicy.RETAIN
        )

        access_point = file_system.add_access_point(
            "JenkinsAccessPoint",
            create_acl=efs.Acl(
                owner_uid=str(identity.uid),
                owner_gid=str(identity.gid),
                permissions=identity.permissions
            ),
            path=access_point_path,
            posix_user=efs.PosixUser(
                uid=str(identity.uid),
                gid=str(identity.gid)
            )
        )

        Annotations.of(access_point).add_warning_v2(
            ACCESS_POINT_REPLACEMENT_WARNING_ID,
            "Changing the POSIX identity or path of this access point replaces it "
            "(destroy then create); tasks mounting it must be restarted afterwards."
        )

        logger.info(
            "EFS %s with access point %s (uid=%s gid=%s mode=%s)",
            file_system_name, access_point_path,
            identity.uid, identity.gid, identity.permissions
        )

        self.handle = VolumeHandle(
            file_system=file_system,
            access_point=AccessPointHandle(
                access_point=access_point,
                path=access_point_path,
                identity=identity
            )
        )
