from typing import Callable, List

import jsii
from aws_cdk import IStableListProducer, Lazy
from gatewaykit.patterns.common import ConfigurationConflictException

MAX_POLICY_NAME_LENGTH = 128


@jsii.implements(IStableListProducer)
class _ListProducer:
    def __init__(self, producer: Callable[[], List[str]]) -> None:
        self.producer = producer

    def produce(self) -> List[str]:
        return list(self.producer())


def undefined_if_empty(producer: Callable[[], List[str]]) -> List[str]:
    """Lazy list that renders as unset instead of `[]` when empty."""
    return Lazy.list(_ListProducer(producer), omit_empty=True)


def generate_policy_name(unique_id: str) -> str:
    return unique_id[max(0, len(unique_id) - MAX_POLICY_NAME_LENGTH) :]


class AttachedPolicies:
    """Inline policies attached to one identity, unique by name."""

    def __init__(self) -> None:
        self.policies = []

    def attach(self, policy) -> None:
        if any(attached is policy for attached in self.policies):
            return
        if any(attached.policy_name == policy.policy_name for attached in self.policies):
            raise ConfigurationConflictException(
                f"A policy named '{policy.policy_name}' is already attached"
            )
        self.policies.append(policy)
