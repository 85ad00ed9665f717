"""
Constants used across the Jenkins stacks.
"""

# Stack description
STACK_DESCRIPTION = "Jenkins on ECS Fargate with EFS-backed JENKINS_HOME behind an HTTPS load balancer"

# Service sizing defaults
DEFAULT_CONTAINER_IMAGE = "jenkins/jenkins"
DEFAULT_CPU = 256
DEFAULT_MEMORY_LIMIT_MIB = 1024
DEFAULT_CONTAINER_PORT = 8080
DEFAULT_DESIRED_COUNT = 1

# Valid Fargate task sizes: CPU units -> allowed memory (MiB)
FARGATE_MEMORY_BY_CPU = {
    256: (512, 1024, 2048),
    512: tuple(range(1024, 4097, 1024)),
    1024: tuple(range(2048, 8193, 1024)),
    2048: tuple(range(4096, 16385, 1024)),
    4096: tuple(range(8192, 30721, 1024)),
}

# Health checks
DEFAULT_HEALTH_CHECK_PATH = "/login"  # Jenkins answers 403 on "/" without a session
DEFAULT_HEALTH_CHECK_GRACE_PERIOD_MINUTES = 5

# Networking
DEFAULT_USE_DEFAULT_VPC = True
NFS_PORT = 2049

# Cluster discovery parameters
DEFAULT_CLUSTER_NAME = "jenkins-cluster"
CLUSTER_ARN_PARAMETER_DESCRIPTION = "The arn of the Platform ECS cluster."
CLUSTER_NAME_PARAMETER_DESCRIPTION = "The name of the Platform ECS cluster."

# EFS volume
DEFAULT_FILE_SYSTEM_NAME = "jenkins-fs"
DEFAULT_ACCESS_POINT_PATH = "/jenkins"
DEFAULT_POSIX_UID = 1000  # uid of the jenkins user in the official image
DEFAULT_POSIX_GID = 1000
DEFAULT_ACCESS_POINT_PERMISSIONS = "777"
EFS_VOLUME_NAME = "efs"
EFS_VOLUME_ROOT_DIRECTORY = "/"
DEFAULT_JENKINS_HOME_PATH = "/var/jenkins_home"

# Task definition registration
REGISTER_TASK_DEFINITION_SERVICE = "ECS"
REGISTER_TASK_DEFINITION_ACTION = "registerTaskDefinition"
REGISTER_TASK_DEFINITION_PERMISSIONS = ("ecs:RegisterTaskDefinition", "ecs:TagResource")
TASK_DEFINITION_ARN_PATH = "taskDefinition.taskDefinitionArn"

# Tagging
DEFAULT_SERVICE_TAG = "jenkins"
