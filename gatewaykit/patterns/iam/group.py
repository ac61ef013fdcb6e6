import logging
import os
from typing import List, Optional

from aws_cdk import aws_iam as _iam
from constructs import Construct
from gatewaykit.patterns.iam.policy import Policy
from gatewaykit.patterns.iam.util import AttachedPolicies, undefined_if_empty


class Group(Construct):
    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        group_name: Optional[str] = None,
        managed_policy_arns: Optional[List[str]] = None,
        path: Optional[str] = None,
    ) -> None:
        super().__init__(scope, construct_id)
        self.logger = logging.getLogger(self.__class__.__name__)
        self.logger.setLevel(os.environ.get("LOGGING", logging.DEBUG))

        self.managed_policies: List[str] = list(managed_policy_arns or [])
        self.attached_policies = AttachedPolicies()
        self.default_policy: Optional[Policy] = None

        group = _iam.CfnGroup(
            self,
            "Resource",
            group_name=group_name,
            managed_policy_arns=undefined_if_empty(lambda: self.managed_policies),
            path=path,
        )

        self.group_name = group.ref
        self.group_arn = group.attr_arn
        self.principal = _iam.ArnPrincipal(self.group_arn)

    def attach_managed_policy(self, arn: str) -> None:
        self.managed_policies.append(arn)

    def attach_inline_policy(self, policy: Policy) -> None:
        self.attached_policies.attach(policy)
        policy.attach_to_group(self)

    def add_user(self, user) -> None:
        user.add_to_group(self)

    def add_to_policy(self, statement: _iam.PolicyStatement) -> None:
        """Adds a statement to the default inline policy, creating it on first use."""
        if self.default_policy is None:
            self.logger.debug(f"Creating default policy for '{self.node.path}'")
            self.default_policy = Policy(self, "DefaultPolicy")
            self.default_policy.attach_to_group(self)

        self.default_policy.add_statement(statement)
