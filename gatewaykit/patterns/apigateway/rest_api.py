import logging
import os
from enum import Enum
from typing import Dict, List, Optional

from aws_cdk import (
    ArnFormat,
    CfnOutput,
    Stack,
    aws_apigateway as _aws_apigateway,
    aws_iam as _iam,
)
from constructs import Construct
from gatewaykit.patterns.apigateway.deployment import Deployment
from gatewaykit.patterns.apigateway.integration import (
    APIGATEWAY_PRINCIPAL,
    Integration,
)
from gatewaykit.patterns.apigateway.method import Method, MethodOptions
from gatewaykit.patterns.apigateway.resource import Resource
from gatewaykit.patterns.apigateway.stage import (
    DEFAULT_STAGE_NAME,
    Stage,
    StageOptions,
)
from gatewaykit.patterns.common import (
    ConfigurationConflictException,
    IPrincipal,
    IRestApiRef,
    StateException,
    ValidationException,
    without_none,
)

MAX_COMPRESSION_SIZE = 10485760
CLOUDWATCH_LOGS_POLICY = "service-role/AmazonAPIGatewayPushToCloudWatchLogs"


class ApiKeySourceType(Enum):
    HEADER = "HEADER"
    AUTHORIZER = "AUTHORIZER"


class EndpointType(Enum):
    EDGE = "EDGE"
    REGIONAL = "REGIONAL"
    PRIVATE = "PRIVATE"


class RestApi(Construct):
    """REST API in Amazon API Gateway.

    Use `add_resource` and `on_method` to build the API model. Unless `deploy`
    is disabled, the API gets a deployment that is recreated whenever the
    model changes and a stage (`prod` by default) that always points to it;
    the root URL of that stage is published as the `Endpoint` output.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        rest_api_name: Optional[str] = None,
        deploy: bool = True,
        deploy_options: Optional[StageOptions] = None,
        retain_deployments: bool = True,
        endpoint_types: Optional[List[EndpointType]] = None,
        binary_media_types: Optional[List[str]] = None,
        minimum_compression_size: Optional[int] = None,
        api_key_source_type: Optional[ApiKeySourceType] = None,
        clone_from: Optional[IRestApiRef] = None,
        cloud_watch_role: bool = True,
        default_integration: Optional[Integration] = None,
        policy: Optional[_iam.PolicyDocument] = None,
        description: Optional[str] = None,
        fail_on_warnings: Optional[bool] = None,
        parameters: Optional[Dict[str, str]] = None,
    ) -> None:
        if not deploy and deploy_options is not None:
            raise ConfigurationConflictException(
                "Cannot set 'deploy_options' if 'deploy' is disabled"
            )
        if minimum_compression_size is not None and not (
            0 <= minimum_compression_size <= MAX_COMPRESSION_SIZE
        ):
            raise ValidationException(
                f"'minimum_compression_size' must be between 0 and "
                f"{MAX_COMPRESSION_SIZE}: {minimum_compression_size}"
            )
        super().__init__(scope, construct_id)
        self.logger = logging.getLogger(self.__class__.__name__)
        self.logger.setLevel(os.environ.get("LOGGING", logging.DEBUG))

        api_config = without_none(
            dict(
                name=rest_api_name or construct_id,
                description=description,
                fail_on_warnings=fail_on_warnings,
                minimum_compression_size=minimum_compression_size,
                binary_media_types=binary_media_types,
                endpoint_types=[t.value for t in endpoint_types]
                if endpoint_types
                else None,
                api_key_source_type=api_key_source_type.value
                if api_key_source_type
                else None,
                clone_from=clone_from.rest_api_id if clone_from else None,
                parameters=parameters,
            )
        )
        resource = _aws_apigateway.CfnRestApi(
            self,
            "Resource",
            name=api_config["name"],
            description=description,
            policy=policy,
            fail_on_warnings=fail_on_warnings,
            minimum_compression_size=minimum_compression_size,
            binary_media_types=binary_media_types,
            endpoint_configuration=_aws_apigateway.CfnRestApi.EndpointConfigurationProperty(
                types=api_config["endpoint_types"]
            )
            if endpoint_types
            else None,
            api_key_source_type=api_config.get("api_key_source_type"),
            clone_from=api_config.get("clone_from"),
            parameters=parameters,
        )

        self.rest_api_id = resource.ref
        self.resource_id = resource.attr_root_resource_id
        self.resource_api = self
        self.resource_path = "/"
        self.default_integration = default_integration
        self.latest_deployment: Optional[Deployment] = None
        self.deployment_stage: Optional[Stage] = None
        self._methods: List[Method] = []

        if policy is not None:
            api_config["policy"] = policy
        self._configure_deployment(
            deploy, deploy_options, retain_deployments, api_config
        )
        if cloud_watch_role:
            self._configure_cloud_watch_role(resource)

    @property
    def url(self) -> str:
        """The deployed root URL of this REST API."""
        return self.url_for_path()

    def url_for_path(self, path: str = "/") -> str:
        if self.deployment_stage is None:
            raise StateException(
                "Cannot determine deployment stage for API from 'deployment_stage'. "
                "Use 'deploy' or explicitly set 'deployment_stage'"
            )
        return self.deployment_stage.url_for_path(path)

    def add_resource(self, path_part: str) -> Resource:
        """Adds a child resource under the root resource."""
        return Resource(self, path_part, parent=self, path_part=path_part)

    def on_method(
        self,
        http_method: str,
        integration: Optional[Integration] = None,
        options: Optional[MethodOptions] = None,
    ) -> Method:
        """Adds a method to the root resource, e.g. `GET /`."""
        return Method(
            self,
            http_method.upper(),
            resource=self,
            http_method=http_method,
            integration=integration,
            options=options,
        )

    def execute_api_arn(
        self, method: str = "*", path: str = "/*", stage: str = "*"
    ) -> str:
        """Returns the execute-api ARN for a method, path and stage of this API.

        The defaults cover all methods and resources on all stages.
        """
        if not path.startswith("/"):
            raise ValidationException(f"'path' must begin with a '/': '{path}'")
        return Stack.of(self).format_arn(
            service="execute-api",
            resource=self.rest_api_id,
            arn_format=ArnFormat.SLASH_RESOURCE_NAME,
            resource_name=f"{stage}/{method}{path}",
        )

    def grant_invoke(
        self,
        grantee: IPrincipal,
        method: str = "*",
        path: str = "/*",
        stage: str = "*",
    ) -> None:
        """Allows the grantee to call `execute-api:Invoke` on this API."""
        grantee.add_to_policy(
            _iam.PolicyStatement(
                actions=["execute-api:Invoke"],
                resources=[self.execute_api_arn(method, path, stage)],
            )
        )

    def validate(self) -> List[str]:
        if not self._methods:
            return ["The REST API doesn't contain any methods"]
        return []

    def _attach_method(self, method: Method) -> None:
        self._methods.append(method)

    def _configure_deployment(
        self,
        deploy: bool,
        deploy_options: Optional[StageOptions],
        retain_deployments: bool,
        api_config: dict,
    ) -> None:
        if not deploy:
            return

        self.latest_deployment = Deployment(
            self,
            "Deployment",
            api=self,
            description="Automatically created by the RestApi construct",
            retain_deployments=retain_deployments,
        )
        self.latest_deployment.add_to_logical_id({"api": api_config})

        # stage name is part of the endpoint, renaming it has to create a new stage
        stage_name = (deploy_options and deploy_options.stage_name) or DEFAULT_STAGE_NAME
        self.deployment_stage = Stage(
            self,
            f"DeploymentStage.{stage_name}",
            deployment=self.latest_deployment,
            options=deploy_options,
        )
        self.logger.debug(f"Deploying '{self.node.path}' to stage '{stage_name}'")

        CfnOutput(self, "Endpoint", value=self.url_for_path())

    def _configure_cloud_watch_role(
        self, api_resource: _aws_apigateway.CfnRestApi
    ) -> None:
        role = _iam.Role(
            self,
            "CloudWatchRole",
            assumed_by=_iam.ServicePrincipal(APIGATEWAY_PRINCIPAL),
            managed_policies=[
                _iam.ManagedPolicy.from_aws_managed_policy_name(CLOUDWATCH_LOGS_POLICY)
            ],
        )
        account = _aws_apigateway.CfnAccount(
            self, "Account", cloud_watch_role_arn=role.role_arn
        )
        account.node.add_dependency(api_resource)
