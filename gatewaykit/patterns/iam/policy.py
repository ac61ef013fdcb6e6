import logging
import os
from typing import List, Optional

from aws_cdk import Names, aws_iam as _iam
from constructs import Construct
from gatewaykit.patterns.common import IIdentityResource
from gatewaykit.patterns.iam.util import generate_policy_name, undefined_if_empty


class Policy(Construct):
    """Inline IAM policy attached to groups, users or roles.

    Attachments are mutual: attaching the policy to a group also records the
    policy on the group and vice versa, so either side can be used.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        policy_name: Optional[str] = None,
        statements: Optional[List[_iam.PolicyStatement]] = None,
        groups: Optional[list] = None,
        users: Optional[list] = None,
        roles: Optional[List[_iam.IRole]] = None,
    ) -> None:
        super().__init__(scope, construct_id)
        self.logger = logging.getLogger(self.__class__.__name__)
        self.logger.setLevel(os.environ.get("LOGGING", logging.DEBUG))

        self.document = _iam.PolicyDocument()
        self.groups = []
        self.users = []
        self.roles: List[_iam.IRole] = []
        self.policy_name = policy_name or generate_policy_name(Names.unique_id(self))

        _iam.CfnPolicy(
            self,
            "Resource",
            policy_document=self.document,
            policy_name=self.policy_name,
            groups=undefined_if_empty(lambda: [g.group_name for g in self.groups]),
            users=undefined_if_empty(lambda: [u.user_name for u in self.users]),
            roles=undefined_if_empty(lambda: [r.role_name for r in self.roles]),
        )

        for statement in statements or []:
            self.add_statement(statement)
        for group in groups or []:
            self.attach_to_group(group)
        for user in users or []:
            self.attach_to_user(user)
        for role in roles or []:
            self.attach_to_role(role)

    def add_statement(self, statement: _iam.PolicyStatement) -> None:
        self.document.add_statements(statement)

    def attach_to_group(self, group: IIdentityResource) -> None:
        if any(attached is group for attached in self.groups):
            return
        self.logger.debug(f"Attaching '{self.policy_name}' to group '{group.node.path}'")
        self.groups.append(group)
        group.attach_inline_policy(self)

    def attach_to_user(self, user: IIdentityResource) -> None:
        if any(attached is user for attached in self.users):
            return
        self.logger.debug(f"Attaching '{self.policy_name}' to user '{user.node.path}'")
        self.users.append(user)
        user.attach_inline_policy(self)

    def attach_to_role(self, role: _iam.IRole) -> None:
        if any(attached is role for attached in self.roles):
            return
        self.roles.append(role)

    def validate(self) -> List[str]:
        errors = []
        if self.document.is_empty:
            errors.append("Policy is empty. You must add statements to the policy")
        if not (self.groups or self.users or self.roles):
            errors.append(
                "Policy must be attached to at least one principal: user, group or role"
            )
        return errors
