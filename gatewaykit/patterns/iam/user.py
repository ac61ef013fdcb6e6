import logging
import os
from typing import List, Optional

from aws_cdk import aws_iam as _iam
from constructs import Construct
from gatewaykit.patterns.iam.policy import Policy
from gatewaykit.patterns.iam.util import AttachedPolicies, undefined_if_empty


class User(Construct):
    """IAM user. Group membership is tracked here, not on the group."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        user_name: Optional[str] = None,
        path: Optional[str] = None,
        managed_policy_arns: Optional[List[str]] = None,
        groups: Optional[list] = None,
    ) -> None:
        super().__init__(scope, construct_id)
        self.logger = logging.getLogger(self.__class__.__name__)
        self.logger.setLevel(os.environ.get("LOGGING", logging.DEBUG))

        self.groups = []
        self.managed_policies: List[str] = list(managed_policy_arns or [])
        self.attached_policies = AttachedPolicies()
        self.default_policy: Optional[Policy] = None

        user = _iam.CfnUser(
            self,
            "Resource",
            user_name=user_name,
            path=path,
            groups=undefined_if_empty(lambda: [g.group_name for g in self.groups]),
            managed_policy_arns=undefined_if_empty(lambda: self.managed_policies),
        )

        self.user_name = user.ref
        self.user_arn = user.attr_arn
        self.principal = _iam.ArnPrincipal(self.user_arn)

        for group in groups or []:
            self.add_to_group(group)

    def add_to_group(self, group) -> None:
        self.logger.debug(f"Adding '{self.node.path}' to group '{group.node.path}'")
        self.groups.append(group)

    def attach_managed_policy(self, arn: str) -> None:
        self.managed_policies.append(arn)

    def attach_inline_policy(self, policy: Policy) -> None:
        self.attached_policies.attach(policy)
        policy.attach_to_user(self)

    def add_to_policy(self, statement: _iam.PolicyStatement) -> None:
        if self.default_policy is None:
            self.default_policy = Policy(self, "DefaultPolicy")
            self.default_policy.attach_to_user(self)

        self.default_policy.add_statement(statement)
