from aws_cdk import (
    Duration,
    aws_iam as _iam,
    aws_lambda as _lambda,
)
from constructs import Construct
from typing import List


class HandlerLambda(Construct):
    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        code_path: str,
        handler: str,
        environment: dict,
        managed_policies: List[str],
        timeout_seconds: int = 10,
    ) -> None:
        super().__init__(scope, construct_id)

        self.function = _lambda.Function(
            self,
            "Function",
            runtime=_lambda.Runtime.PYTHON_3_12,
            code=_lambda.Code.from_asset(code_path),
            handler=handler,
            timeout=Duration.seconds(timeout_seconds),
            environment=environment,
        )
        self.role = self.function.role
        for policy_name in managed_policies:
            self.role.add_managed_policy(
                _iam.ManagedPolicy.from_aws_managed_policy_name(policy_name)
            )
