import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from aws_cdk import aws_apigateway as _aws_apigateway
from constructs import Construct
from gatewaykit.patterns.apigateway.integration import Integration, MockIntegration
from gatewaykit.patterns.common import (
    IRestApiResource,
    StateException,
    without_none,
)

TEST_INVOKE_STAGE = "test-invoke-stage"
PATH_PARAMETER_PATTERN = re.compile(r"\{[^}]+\}")


class AuthorizationType(Enum):
    NONE = "NONE"
    IAM = "AWS_IAM"
    CUSTOM = "CUSTOM"
    COGNITO = "COGNITO_USER_POOLS"


@dataclass
class MethodOptions:
    authorization_type: AuthorizationType = AuthorizationType.NONE
    api_key_required: Optional[bool] = None
    operation_name: Optional[str] = None
    request_parameters: Optional[Dict[str, bool]] = None
    method_responses: Optional[List[str]] = None


class Method(Construct):
    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        resource: IRestApiResource,
        http_method: str,
        integration: Optional[Integration] = None,
        options: Optional[MethodOptions] = None,
    ) -> None:
        integration = integration or resource.default_integration or MockIntegration()
        integration.validate(resource)
        super().__init__(scope, construct_id)

        self.resource = resource
        self.rest_api = resource.resource_api
        self.http_method = http_method.upper()
        options = options or MethodOptions()

        integration.bind(self)
        integration_config = integration.render(self)
        method = _aws_apigateway.CfnMethod(
            self,
            "Resource",
            http_method=self.http_method,
            resource_id=resource.resource_id,
            rest_api_id=self.rest_api.rest_api_id,
            authorization_type=options.authorization_type.value,
            api_key_required=options.api_key_required,
            operation_name=options.operation_name,
            request_parameters=options.request_parameters,
            method_responses=[
                _aws_apigateway.CfnMethod.MethodResponseProperty(status_code=code)
                for code in options.method_responses
            ]
            if options.method_responses
            else None,
            integration=self._render_integration(integration_config),
        )
        self.method_id = method.ref

        self.rest_api._attach_method(self)

        deployment = self.rest_api.latest_deployment
        if deployment:
            deployment._add_method_dependency(self)
            deployment.add_to_logical_id(
                {
                    "method": without_none(
                        dict(
                            http_method=self.http_method,
                            resource_path=resource.resource_path,
                            authorization_type=options.authorization_type.value,
                            api_key_required=options.api_key_required,
                            operation_name=options.operation_name,
                            request_parameters=options.request_parameters,
                            method_responses=options.method_responses,
                            integration=integration_config,
                        )
                    )
                }
            )

    @property
    def method_arn(self) -> str:
        """The execute-api ARN of this method on the deployment stage."""
        stage = self.rest_api.deployment_stage
        if stage is None:
            raise StateException(
                "There is no stage associated with this REST API. "
                "Either use 'deploy' or explicitly assign 'deployment_stage'"
            )
        return self.rest_api.execute_api_arn(
            self._arn_method, self._arn_path, stage.stage_name
        )

    @property
    def test_method_arn(self) -> str:
        """The execute-api ARN used by the console's test invocations."""
        return self.rest_api.execute_api_arn(
            self._arn_method, self._arn_path, TEST_INVOKE_STAGE
        )

    @property
    def _arn_method(self) -> str:
        return "*" if self.http_method == "ANY" else self.http_method

    @property
    def _arn_path(self) -> str:
        # path parameters match any segment
        return PATH_PARAMETER_PATTERN.sub("*", self.resource.resource_path)

    @staticmethod
    def _render_integration(config: dict):
        config = dict(config)
        responses = config.pop("integration_responses", None)
        if responses:
            config["integration_responses"] = [
                _aws_apigateway.CfnMethod.IntegrationResponseProperty(**response)
                for response in responses
            ]
        return _aws_apigateway.CfnMethod.IntegrationProperty(**config)
