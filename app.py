#!/usr/bin/env python3

import logging

import aws_cdk as cdk
from cdk_nag import AwsSolutionsChecks, NagSuppressions

from helper import config
from stacks import JenkinsStack

logging.basicConfig(level=logging.INFO)

app = cdk.App()

conf = config.Config(app.node.try_get_context('environment') or 'development')

# Use ProjectName for all stack naming
project_name = conf.get_validated_project_name()

jenkins_stack = JenkinsStack(app, f"{project_name}-jenkins",
                             config=conf,
                             env=conf.get_environment_settings()
                             )

if conf.is_cdk_nag_enabled():
    cdk.Aspects.of(app).add(AwsSolutionsChecks())

# Suppressions for the patterns this stack cannot avoid
NagSuppressions.add_stack_suppressions(jenkins_stack, [
    {"id": "AwsSolutions-IAM4", "reason": "AwsCustomResource provider Lambda uses the AWS managed basic execution role"},
    {"id": "AwsSolutions-IAM5", "reason": "registerTaskDefinition does not support resource-level permissions", "appliesTo": ["Resource::*"]},
    {"id": "AwsSolutions-L1", "reason": "AwsCustomResource provider runtime is managed by the CDK"},
    {"id": "AwsSolutions-ELB2", "reason": "Load balancer access logging is not enabled for the CI service"},
    {"id": "AwsSolutions-EC23", "reason": "Jenkins is served publicly over HTTPS through the load balancer"},
    {"id": "AwsSolutions-ECS2", "reason": "Container environment carries no secrets"},
    {"id": "AwsSolutions-ECS4", "reason": "Container Insights is not required for the Jenkins cluster"},
    {"id": "CdkNagValidationFailure", "reason": "Security group rules use intrinsic functions which cannot be validated at synth time"},
])

app.synth()
