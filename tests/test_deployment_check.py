"""
Unit tests for the post-deploy checker.

boto3 clients are replaced with mocks; no AWS calls are made.
"""

from unittest.mock import Mock, patch

import pytest
from botocore.exceptions import ClientError

from helper import deployment_check
from helper.deployment_check import DeploymentChecker

CLUSTER_NAME = "jenkins-cluster"
REGISTERED = "arn:aws:ecs:eu-west-1:123456789012:task-definition/jenkins:7"
PLACEHOLDER = "arn:aws:ecs:eu-west-1:123456789012:task-definition/jenkins:6"

OUTPUTS = {
    "ClusterName": CLUSTER_NAME,
    "ClusterArnParameterName": "/com/benkhard/platform-cluster-arn",
    "ClusterNameParameterName": "/com/benkhard/platform-cluster-name",
    "ServiceName": "jenkins-service",
    "FileSystemId": "fs-12345678",
    "RegisteredTaskDefinitionArn": REGISTERED,
    "PlaceholderTaskDefinitionArn": PLACEHOLDER,
}


def _nfs_permission(source_group):
    return {
        "IpProtocol": "tcp",
        "FromPort": 2049,
        "ToPort": 2049,
        "UserIdGroupPairs": [{"GroupId": source_group}]
    }


@pytest.fixture
def clients():
    """Mock clients describing a healthy deployment."""
    cloudformation = Mock()
    cloudformation.describe_stacks.return_value = {
        "Stacks": [{
            "Outputs": [{"OutputKey": key, "OutputValue": value} for key, value in OUTPUTS.items()]
        }]
    }

    parameters = {
        "/com/benkhard/platform-cluster-arn": f"arn:aws:ecs:eu-west-1:123456789012:cluster/{CLUSTER_NAME}",
        "/com/benkhard/platform-cluster-name": CLUSTER_NAME,
    }
    ssm = Mock()
    ssm.get_parameter.side_effect = lambda Name: {"Parameter": {"Value": parameters[Name]}}

    ecs = Mock()
    ecs.describe_services.return_value = {
        "services": [{
            "taskDefinition": REGISTERED,
            "networkConfiguration": {
                "awsvpcConfiguration": {"securityGroups": ["sg-service"]}
            }
        }]
    }
    ecs.describe_task_definition.return_value = {
        "taskDefinition": {
            "containerDefinitions": [{
                "name": "web",
                "mountPoints": [{
                    "containerPath": "/var/jenkins_home",
                    "sourceVolume": "efs",
                    "readOnly": False
                }]
            }],
            "volumes": [{
                "name": "efs",
                "efsVolumeConfiguration": {
                    "fileSystemId": "fs-12345678",
                    "rootDirectory": "/",
                    "transitEncryption": "ENABLED",
                    "authorizationConfig": {"accessPointId": "fsap-1"}
                }
            }]
        }
    }

    efs = Mock()
    efs.describe_mount_targets.return_value = {"MountTargets": [{"MountTargetId": "fsmt-1"}]}
    efs.describe_mount_target_security_groups.return_value = {"SecurityGroups": ["sg-efs"]}

    groups = {
        "sg-service": {"GroupId": "sg-service", "IpPermissions": [_nfs_permission("sg-efs")]},
        "sg-efs": {"GroupId": "sg-efs", "IpPermissions": [_nfs_permission("sg-service")]},
    }
    ec2 = Mock()
    ec2.describe_security_groups.side_effect = lambda GroupIds: {
        "SecurityGroups": [groups[group_id] for group_id in GroupIds]
    }

    return {"cloudformation": cloudformation, "ssm": ssm, "ecs": ecs, "efs": efs, "ec2": ec2}


@pytest.fixture
def session(clients):
    session = Mock()
    session.client.side_effect = lambda name: clients[name]
    return session


@pytest.fixture
def checker(session):
    return DeploymentChecker("jenkins-dev-jenkins", session=session)


def _status(results):
    return {result["check"]: result["status"] for result in results}


class TestDeploymentChecker:
    """Test each post-deploy check against mocked AWS responses."""

    def test_healthy_deployment_passes(self, checker):
        results = checker.run()

        assert len(results) == 4
        assert set(_status(results).values()) == {"PASS"}

    def test_outputs_are_read_once(self, checker, clients):
        checker.run()
        clients["cloudformation"].describe_stacks.assert_called_once_with(StackName="jenkins-dev-jenkins")

    def test_service_on_placeholder_fails(self, checker, clients):
        clients["ecs"].describe_services.return_value["services"][0]["taskDefinition"] = PLACEHOLDER

        assert checker.check("task definition", checker.verify_service_task_definition) is False
        assert "placeholder" in checker.results[-1]["error"]

    def test_unencrypted_volume_fails(self, checker, clients):
        volume = clients["ecs"].describe_task_definition.return_value["taskDefinition"]["volumes"][0]
        volume["efsVolumeConfiguration"]["transitEncryption"] = "DISABLED"

        assert checker.check("efs", checker.verify_efs_mount) is False

    def test_wrong_mount_path_fails(self, session):
        checker = DeploymentChecker("jenkins-dev-jenkins", jenkins_home_path="/data/jenkins", session=session)
        assert checker.check("efs", checker.verify_efs_mount) is False

    def test_one_way_nfs_fails(self, checker, clients):
        clients["ec2"].describe_security_groups.side_effect = lambda GroupIds: {
            "SecurityGroups": [
                {"GroupId": group_id,
                 "IpPermissions": [_nfs_permission("sg-service")] if group_id == "sg-efs" else []}
                for group_id in GroupIds
            ]
        }

        assert checker.check("nfs", checker.verify_nfs_rules) is False
        assert "Service does not accept" in checker.results[-1]["error"]

    def test_cluster_parameter_mismatch_fails(self, checker, clients):
        clients["ssm"].get_parameter.side_effect = lambda Name: {"Parameter": {"Value": "other-cluster"}}
        assert checker.check("ssm", checker.verify_cluster_parameters) is False

    def test_client_error_is_recorded(self, checker, clients):
        clients["ssm"].get_parameter.side_effect = ClientError(
            {"Error": {"Code": "ParameterNotFound", "Message": "not found"}}, "GetParameter"
        )

        assert checker.check("ssm", checker.verify_cluster_parameters) is False
        assert checker.results[-1]["status"] == "FAIL"

    def test_missing_output_fails(self, checker, clients):
        clients["cloudformation"].describe_stacks.return_value = {"Stacks": [{"Outputs": []}]}

        assert checker.check("task definition", checker.verify_service_task_definition) is False
        assert "RegisteredTaskDefinitionArn" in checker.results[-1]["error"]


class TestMain:
    """Test the command line entry point."""

    def test_exit_zero_when_healthy(self, session, capsys):
        with patch.object(deployment_check.boto3.session, "Session", return_value=session) as factory:
            assert deployment_check.main(["jenkins-dev-jenkins", "--region", "eu-west-1"]) == 0

        factory.assert_called_once_with(region_name="eu-west-1")
        assert "All 4 checks PASSED" in capsys.readouterr().out

    def test_exit_one_on_failure(self, session, clients, capsys):
        clients["ecs"].describe_services.return_value["services"][0]["taskDefinition"] = PLACEHOLDER

        with patch.object(deployment_check.boto3.session, "Session", return_value=session):
            assert deployment_check.main(["jenkins-dev-jenkins"]) == 1

        assert "FAILED" in capsys.readouterr().out
