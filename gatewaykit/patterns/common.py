from typing import Optional, Protocol

from aws_cdk import aws_iam as _iam


class GatewayKitException(Exception):
    pass


class ConfigurationConflictException(GatewayKitException):
    """Mutually exclusive options were supplied together."""


class ValidationException(GatewayKitException):
    """An argument value is malformed."""


class StateException(GatewayKitException):
    """An operation needs something that was never set up."""


class IRestApiRef(Protocol):
    rest_api_id: str


class IRestApiResource(Protocol):
    resource_api: "IRestApiRef"
    resource_id: str
    resource_path: str
    default_integration: Optional[object]

    def add_resource(self, path_part: str) -> "IRestApiResource":
        ...

    def on_method(self, http_method: str, integration=None, options=None):
        ...


class IPrincipal(Protocol):
    principal: _iam.IPrincipal

    def add_to_policy(self, statement: _iam.PolicyStatement) -> None:
        ...


class IIdentityResource(Protocol):
    def attach_managed_policy(self, arn: str) -> None:
        ...

    def attach_inline_policy(self, policy) -> None:
        ...


def join_path(parent: str, path_part: str) -> str:
    if parent.endswith("/"):
        return f"{parent}{path_part}"
    return f"{parent}/{path_part}"


def without_none(values: dict) -> dict:
    return {k: v for k, v in values.items() if v is not None}
