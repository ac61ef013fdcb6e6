import os

from aws_cdk import (
    Annotations,
    CfnOutput,
    Stack,
    aws_ssm as _ssm,
)
from constructs import Construct
from gatewaykit.patterns.apigateway.integration import (
    IntegrationOptions,
    IntegrationResponse,
    LambdaIntegration,
    MockIntegration,
)
from gatewaykit.patterns.apigateway.method import MethodOptions
from gatewaykit.patterns.apigateway.rest_api import EndpointType, RestApi
from gatewaykit.patterns.apigateway.stage import MethodLoggingLevel, StageOptions
from gatewaykit.patterns.handler_lambda import HandlerLambda
from gatewaykit.patterns.iam.group import Group
from gatewaykit.patterns.iam.user import User

GREETER_CODE_PATH = os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src", "greeter"
)
GREETING_PARAMETER_NAME = "/gatewaykit/greeting"


class GatewayKitStack(Stack):
    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        stage_name: str = "prod",
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        #
        # configuration
        #
        _ssm.StringParameter(
            self,
            "GreetingSsm",
            parameter_name=GREETING_PARAMETER_NAME,
            string_value="Hello",
        )

        #
        # greeter lambda
        #
        greeter_lambda = HandlerLambda(
            self,
            "Greeter",
            code_path=GREETER_CODE_PATH,
            handler="greeter.greeter_handler",
            environment={
                "LOGGING": "DEBUG",
                "GREETING_PARAMETER": GREETING_PARAMETER_NAME,
            },
            managed_policies=["AmazonSSMReadOnlyAccess"],
        )

        #
        # greeter API
        #
        self.api = RestApi(
            self,
            "GreeterApi",
            rest_api_name="GreeterApi",
            description="github.com/gatewaykit - greeter api",
            endpoint_types=[EndpointType.REGIONAL],
            deploy_options=StageOptions(
                stage_name=stage_name,
                logging_level=MethodLoggingLevel.INFO,
                metrics_enabled=True,
            ),
            default_integration=LambdaIntegration(greeter_lambda.function),
        )
        self.api.on_method(
            "GET",
            MockIntegration(
                IntegrationOptions(
                    request_templates={"application/json": '{"statusCode": 200}'},
                    integration_responses=[IntegrationResponse(status_code="200")],
                )
            ),
            MethodOptions(method_responses=["200"]),
        )
        greet_resource = self.api.add_resource("greet")
        greet_resource.on_method("GET")
        greet_resource.add_resource("{name}").on_method("GET")

        #
        # api invokers
        #
        self.invokers = Group(self, "ApiInvokers", path="/gatewaykit/")
        self.api.grant_invoke(self.invokers, stage=stage_name)
        smoke_tester = User(self, "SmokeTester", path="/gatewaykit/")
        self.invokers.add_user(smoke_tester)

        #
        # diagnostics
        #
        for construct in (self.api, self.invokers.default_policy):
            for message in construct.validate():
                Annotations.of(construct).add_warning(message)

        #
        # stack outputs
        #
        CfnOutput(self, "GreetUrl", value=self.api.url_for_path("/greet"))
        CfnOutput(self, "InvokersGroupArn", value=self.invokers.group_arn)
