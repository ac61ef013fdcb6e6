from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from aws_cdk import (
    ArnFormat,
    Names,
    Stack,
    aws_iam as _iam,
    aws_lambda as _lambda,
)
from gatewaykit.patterns.common import StateException, without_none

APIGATEWAY_PRINCIPAL = "apigateway.amazonaws.com"


class IntegrationType(Enum):
    AWS = "AWS"
    AWS_PROXY = "AWS_PROXY"
    HTTP = "HTTP"
    HTTP_PROXY = "HTTP_PROXY"
    MOCK = "MOCK"


class PassthroughBehavior(Enum):
    WHEN_NO_MATCH = "WHEN_NO_MATCH"
    NEVER = "NEVER"
    WHEN_NO_TEMPLATES = "WHEN_NO_TEMPLATES"


@dataclass
class IntegrationResponse:
    status_code: str
    selection_pattern: Optional[str] = None
    response_templates: Optional[Dict[str, str]] = None

    def render(self) -> dict:
        return without_none(
            dict(
                status_code=self.status_code,
                selection_pattern=self.selection_pattern,
                response_templates=self.response_templates,
            )
        )


@dataclass
class IntegrationOptions:
    passthrough_behavior: Optional[PassthroughBehavior] = None
    request_templates: Optional[Dict[str, str]] = None
    request_parameters: Optional[Dict[str, str]] = None
    credentials_role: Optional[_iam.IRole] = None
    integration_responses: List[IntegrationResponse] = field(default_factory=list)


class Integration:
    """Backend of a method.

    The same integration can be shared by many methods: `bind` is called once
    per method and `render` returns the plain configuration that ends up in
    the method's `Integration` property (and in the deployment fingerprint).
    """

    def __init__(
        self,
        *,
        type: IntegrationType,
        uri: Optional[str] = None,
        integration_http_method: Optional[str] = None,
        options: Optional[IntegrationOptions] = None,
    ) -> None:
        self.type = type
        self.uri = uri
        self.integration_http_method = integration_http_method
        self.options = options or IntegrationOptions()

    def validate(self, resource) -> None:
        """Raises when the integration cannot be used on `resource`."""

    def bind(self, method) -> None:
        pass

    def render(self, method) -> dict:
        options = self.options
        return without_none(
            dict(
                type=self.type.value,
                uri=self._render_uri(method),
                integration_http_method=self.integration_http_method,
                passthrough_behavior=options.passthrough_behavior.value
                if options.passthrough_behavior
                else None,
                request_templates=options.request_templates,
                request_parameters=options.request_parameters,
                credentials=options.credentials_role.role_arn
                if options.credentials_role
                else None,
                integration_responses=[
                    response.render() for response in options.integration_responses
                ]
                or None,
            )
        )

    def _render_uri(self, method) -> Optional[str]:
        return self.uri


class MockIntegration(Integration):
    def __init__(self, options: Optional[IntegrationOptions] = None) -> None:
        super().__init__(type=IntegrationType.MOCK, options=options)


class HttpIntegration(Integration):
    def __init__(
        self,
        url: str,
        *,
        http_method: str = "GET",
        proxy: bool = True,
        options: Optional[IntegrationOptions] = None,
    ) -> None:
        super().__init__(
            type=IntegrationType.HTTP_PROXY if proxy else IntegrationType.HTTP,
            uri=url,
            integration_http_method=http_method,
            options=options,
        )


class LambdaIntegration(Integration):
    """Invokes a Lambda function and allows API Gateway to call it."""

    def __init__(
        self,
        handler: _lambda.IFunction,
        *,
        proxy: bool = True,
        allow_test_invoke: bool = True,
        options: Optional[IntegrationOptions] = None,
    ) -> None:
        super().__init__(
            type=IntegrationType.AWS_PROXY if proxy else IntegrationType.AWS,
            integration_http_method="POST",
            options=options,
        )
        self.handler = handler
        self.allow_test_invoke = allow_test_invoke

    def validate(self, resource) -> None:
        # permissions are scoped to the method ARN on the deployment stage
        if resource.resource_api.deployment_stage is None:
            raise StateException(
                "Lambda integrations require a deployment stage. "
                "Either use 'deploy' or explicitly assign 'deployment_stage'"
            )

    def bind(self, method) -> None:
        method_id = Names.node_unique_id(method.node)
        principal = _iam.ServicePrincipal(APIGATEWAY_PRINCIPAL)
        self.handler.add_permission(
            f"ApiPermission.{method_id}",
            principal=principal,
            source_arn=method.method_arn,
        )
        if self.allow_test_invoke:
            self.handler.add_permission(
                f"ApiPermission.Test.{method_id}",
                principal=principal,
                source_arn=method.test_method_arn,
            )

    def _render_uri(self, method) -> str:
        return Stack.of(method).format_arn(
            service="apigateway",
            account="lambda",
            resource="path",
            arn_format=ArnFormat.SLASH_RESOURCE_NAME,
            resource_name=f"2015-03-31/functions/{self.handler.function_arn}/invocations",
        )
