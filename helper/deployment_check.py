#!/usr/bin/env python3
"""
Post-deploy verification for the Jenkins stack.

Reads the stack outputs and checks the live resources with boto3:
- the SSM parameters publishing the cluster exist and match the cluster
- the service runs the registered task definition, not the placeholder
- that revision mounts JENKINS_HOME from a transit-encrypted EFS volume
- NFS (TCP 2049) is open both ways between the service and the mount targets

Usage:
    python -m helper.deployment_check <stack-name> --region <region>

Exit 0 = all checks passed. Exit 1 = something is broken.
"""

import argparse
import json
import logging
import sys
from typing import Callable, Dict, Iterable, List, Optional, Set

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from stacks.common.constants import DEFAULT_JENKINS_HOME_PATH, NFS_PORT

logger = logging.getLogger(__name__)


class CheckFailure(Exception):
    """Raised by a check when the deployed state is not the expected one."""
    pass


def _allows_port(permission: Dict, port: int, peers: Set[str]) -> bool:
    if permission.get('IpProtocol') not in ('tcp', '6', '-1'):
        return False
    if permission.get('IpProtocol') != '-1':
        if not permission.get('FromPort', 0) <= port <= permission.get('ToPort', -1):
            return False
    return any(pair.get('GroupId') in peers for pair in permission.get('UserIdGroupPairs', []))


class DeploymentChecker:
    """Runs the post-deploy checks against one CloudFormation stack."""

    def __init__(self,
                 stack_name: str,
                 region_name: Optional[str] = None,
                 jenkins_home_path: str = DEFAULT_JENKINS_HOME_PATH,
                 session: Optional[boto3.session.Session] = None) -> None:
        session = session or boto3.session.Session(region_name=region_name)
        self.stack_name = stack_name
        self.jenkins_home_path = jenkins_home_path
        self.cloudformation = session.client('cloudformation')
        self.ssm = session.client('ssm')
        self.ecs = session.client('ecs')
        self.efs = session.client('efs')
        self.ec2 = session.client('ec2')
        self.results: List[Dict[str, str]] = []
        self._outputs: Optional[Dict[str, str]] = None

    @property
    def outputs(self) -> Dict[str, str]:
        if self._outputs is None:
            stacks = self.cloudformation.describe_stacks(StackName=self.stack_name)['Stacks']
            self._outputs = {
                output['OutputKey']: output['OutputValue']
                for output in stacks[0].get('Outputs', [])
            }
        return self._outputs

    def output(self, key: str) -> str:
        try:
            return self.outputs[key]
        except KeyError:
            raise CheckFailure(f"Stack {self.stack_name} has no output '{key}'")

    def check(self, name: str, fn: Callable[[], None]) -> bool:
        """Run one check and record PASS or FAIL."""
        try:
            fn()
        except (CheckFailure, ClientError, BotoCoreError) as e:
            logger.error("FAIL %s: %s", name, e)
            self.results.append({"check": name, "status": "FAIL", "error": str(e)})
            return False
        logger.info("PASS %s", name)
        self.results.append({"check": name, "status": "PASS"})
        return True

    def _describe_service(self) -> Dict:
        services = self.ecs.describe_services(
            cluster=self.output('ClusterName'),
            services=[self.output('ServiceName')]
        )['services']
        if not services:
            raise CheckFailure(f"Service {self.output('ServiceName')} not found")
        return services[0]

    def verify_cluster_parameters(self) -> None:
        cluster_name = self.output('ClusterName')
        arn_value = self.ssm.get_parameter(Name=self.output('ClusterArnParameterName'))['Parameter']['Value']
        name_value = self.ssm.get_parameter(Name=self.output('ClusterNameParameterName'))['Parameter']['Value']

        if name_value != cluster_name:
            raise CheckFailure(f"Cluster name parameter is {name_value!r}, expected {cluster_name!r}")
        if not arn_value.endswith(f":cluster/{cluster_name}"):
            raise CheckFailure(f"Cluster ARN parameter {arn_value!r} does not name {cluster_name}")

    def verify_service_task_definition(self) -> None:
        registered = self.output('RegisteredTaskDefinitionArn')
        placeholder = self.output('PlaceholderTaskDefinitionArn')
        running = self._describe_service()['taskDefinition']

        if running == placeholder:
            raise CheckFailure(f"Service still runs the placeholder task definition {placeholder}")
        if running != registered:
            raise CheckFailure(f"Service runs {running}, expected {registered}")

    def verify_efs_mount(self) -> None:
        task_definition = self.ecs.describe_task_definition(
            taskDefinition=self.output('RegisteredTaskDefinitionArn')
        )['taskDefinition']
        file_system_id = self.output('FileSystemId')

        volume_names = {
            volume['name']
            for volume in task_definition.get('volumes', [])
            if volume.get('efsVolumeConfiguration', {}).get('fileSystemId') == file_system_id
            and volume['efsVolumeConfiguration'].get('transitEncryption') == 'ENABLED'
        }
        if not volume_names:
            raise CheckFailure(f"No transit-encrypted volume for {file_system_id}")

        mounted = any(
            mount_point.get('containerPath') == self.jenkins_home_path
            and mount_point.get('sourceVolume') in volume_names
            for container in task_definition.get('containerDefinitions', [])
            for mount_point in container.get('mountPoints', [])
        )
        if not mounted:
            raise CheckFailure(f"{self.jenkins_home_path} is not mounted from {file_system_id}")

    def _mount_target_security_groups(self) -> Set[str]:
        groups = set()
        mount_targets = self.efs.describe_mount_targets(
            FileSystemId=self.output('FileSystemId')
        )['MountTargets']
        for mount_target in mount_targets:
            groups.update(self.efs.describe_mount_target_security_groups(
                MountTargetId=mount_target['MountTargetId']
            )['SecurityGroups'])
        if not groups:
            raise CheckFailure(f"File system {self.output('FileSystemId')} has no mount targets")
        return groups

    def _ingress_allows(self, group_ids: Iterable[str], peers: Set[str]) -> bool:
        security_groups = self.ec2.describe_security_groups(GroupIds=list(group_ids))['SecurityGroups']
        return any(
            _allows_port(permission, NFS_PORT, peers)
            for group in security_groups
            for permission in group.get('IpPermissions', [])
        )

    def verify_nfs_rules(self) -> None:
        service = self._describe_service()
        service_groups = set(
            service['networkConfiguration']['awsvpcConfiguration'].get('securityGroups', [])
        )
        mount_groups = self._mount_target_security_groups()

        if not self._ingress_allows(mount_groups, service_groups):
            raise CheckFailure(f"Mount targets do not accept TCP {NFS_PORT} from the service")
        if not self._ingress_allows(service_groups, mount_groups):
            raise CheckFailure(f"Service does not accept TCP {NFS_PORT} from the mount targets")

    def run(self) -> List[Dict[str, str]]:
        self.check("SSM cluster parameters", self.verify_cluster_parameters)
        self.check("Service runs registered task definition", self.verify_service_task_definition)
        self.check("JENKINS_HOME on encrypted EFS", self.verify_efs_mount)
        self.check(f"TCP {NFS_PORT} between service and EFS", self.verify_nfs_rules)
        return self.results


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Verify a deployed Jenkins stack")
    parser.add_argument("stack_name", help="CloudFormation stack name, e.g. jenkins-dev-jenkins")
    parser.add_argument("--region", help="AWS region of the stack")
    parser.add_argument("--jenkins-home", default=DEFAULT_JENKINS_HOME_PATH,
                        help="Container path JENKINS_HOME is mounted at")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)

    checker = DeploymentChecker(args.stack_name, region_name=args.region,
                                jenkins_home_path=args.jenkins_home)
    results = checker.run()

    for r in results:
        print(json.dumps(r))

    failed = [r for r in results if r["status"] == "FAIL"]
    if failed:
        print(f"\n{len(failed)} check(s) FAILED")
        return 1
    print(f"\nAll {len(results)} checks PASSED")
    return 0


if __name__ == "__main__":
    sys.exit(main())
