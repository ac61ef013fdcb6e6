import json

import aws_cdk as core
import aws_cdk.assertions as assertions
import pytest
from gatewaykit.patterns.apigateway.deployment import Deployment
from gatewaykit.patterns.apigateway.integration import HttpIntegration
from gatewaykit.patterns.apigateway.rest_api import (
    ApiKeySourceType,
    EndpointType,
    RestApi,
)
from gatewaykit.patterns.apigateway.stage import Stage, StageOptions
from gatewaykit.patterns.common import (
    ConfigurationConflictException,
    StateException,
    ValidationException,
)
from gatewaykit.patterns.iam.group import Group


@pytest.fixture
def stack():
    return core.Stack(core.App(), "TestStack")


def logical_id(stack, construct):
    return stack.get_logical_id(construct.node.default_child)


def resolved(stack, value):
    return json.dumps(stack.resolve(value))


def test_should_deploy_to_prod_stage_by_default(stack):
    api = RestApi(stack, "Api")
    api.on_method("GET")

    assert api.latest_deployment is not None
    assert api.deployment_stage is not None
    assert api.deployment_stage.node.id == "DeploymentStage.prod"
    assert "/prod/" in resolved(stack, api.url)

    template = assertions.Template.from_stack(stack)
    template.resource_count_is("AWS::ApiGateway::Deployment", 1)
    template.has_resource_properties(
        "AWS::ApiGateway::Stage",
        {"StageName": "prod", "RestApiId": {"Ref": logical_id(stack, api)}},
    )
    assert any(key.startswith("ApiEndpoint") for key in template.find_outputs("*"))


def test_should_embed_stage_name_in_stage_id(stack):
    api = RestApi(stack, "Api", deploy_options=StageOptions(stage_name="beta"))
    api.on_method("GET")

    assert api.deployment_stage.node.id == "DeploymentStage.beta"
    assert api.deployment_stage.stage_name == "beta"
    template = assertions.Template.from_stack(stack)
    template.has_resource_properties("AWS::ApiGateway::Stage", {"StageName": "beta"})


def test_should_reject_deploy_options_when_deploy_is_disabled(stack):
    with pytest.raises(ConfigurationConflictException):
        RestApi(stack, "Api", deploy=False, deploy_options=StageOptions())

    assert stack.node.try_find_child("Api") is None


def test_should_not_deploy_when_deploy_is_disabled(stack):
    api = RestApi(stack, "Api", deploy=False)
    api.on_method("GET")

    assert api.latest_deployment is None
    assert api.deployment_stage is None
    with pytest.raises(StateException):
        api.url
    with pytest.raises(StateException):
        api.url_for_path("/books")

    template = assertions.Template.from_stack(stack)
    template.resource_count_is("AWS::ApiGateway::Deployment", 0)
    template.resource_count_is("AWS::ApiGateway::Stage", 0)


def test_should_use_explicitly_assigned_stage_for_url(stack):
    api = RestApi(stack, "Api", deploy=False)
    api.on_method("GET")
    deployment = Deployment(stack, "ManualDeployment", api=api)
    api.deployment_stage = Stage(
        stack, "Beta", deployment=deployment, options=StageOptions(stage_name="beta")
    )

    url = resolved(stack, api.url_for_path("/books"))

    assert "/beta/books" in url


def test_should_build_execute_api_arn_with_defaults(stack):
    api = RestApi(stack, "Api")

    arn = resolved(stack, api.execute_api_arn())

    assert ":execute-api:" in arn
    assert logical_id(stack, api) in arn
    assert '"/*/*/*"' in arn
    assert arn == resolved(stack, api.execute_api_arn("*", "/*", "*"))


def test_should_build_execute_api_arn_for_method_path_and_stage(stack):
    api = RestApi(stack, "Api")

    arn = resolved(stack, api.execute_api_arn("GET", "/books", "prod"))

    assert '"/prod/GET/books"' in arn


@pytest.mark.parametrize("path", ["books", "*", "books/1", " /books", ""])
def test_should_reject_execute_api_arn_path_without_leading_slash(stack, path):
    api = RestApi(stack, "Api")

    with pytest.raises(ValidationException):
        api.execute_api_arn(path=path)


def test_should_report_missing_methods(stack):
    api = RestApi(stack, "Api")

    assert api.validate() == ["The REST API doesn't contain any methods"]


def test_should_not_report_when_root_method_exists(stack):
    api = RestApi(stack, "Api")
    api.on_method("GET")

    assert api.validate() == []


def test_should_not_report_when_nested_method_exists(stack):
    api = RestApi(stack, "Api")
    api.add_resource("books").on_method("GET")

    assert api.validate() == []


def test_should_configure_cloud_watch_role_after_api(stack):
    api = RestApi(stack, "Api")
    api.on_method("GET")

    template = assertions.Template.from_stack(stack)
    template.has_resource_properties(
        "AWS::IAM::Role",
        {
            "AssumeRolePolicyDocument": {
                "Statement": [
                    {
                        "Action": "sts:AssumeRole",
                        "Effect": "Allow",
                        "Principal": {"Service": "apigateway.amazonaws.com"},
                    }
                ]
            }
        },
    )
    assert "service-role/AmazonAPIGatewayPushToCloudWatchLogs" in json.dumps(
        template.to_json()
    )
    accounts = template.find_resources("AWS::ApiGateway::Account")
    assert len(accounts) == 1
    account = next(iter(accounts.values()))
    assert logical_id(stack, api) in account["DependsOn"]


def test_should_skip_cloud_watch_role_when_disabled(stack):
    api = RestApi(stack, "Api", cloud_watch_role=False)
    api.on_method("GET")

    template = assertions.Template.from_stack(stack)
    template.resource_count_is("AWS::ApiGateway::Account", 0)
    template.resource_count_is("AWS::IAM::Role", 0)


@pytest.mark.parametrize("size", [-1, 10485761])
def test_should_reject_minimum_compression_size_out_of_range(stack, size):
    with pytest.raises(ValidationException):
        RestApi(stack, "Api", minimum_compression_size=size)

    assert stack.node.try_find_child("Api") is None


@pytest.mark.parametrize("size", [0, 10485760])
def test_should_accept_minimum_compression_size_bounds(stack, size):
    api = RestApi(stack, "Api", minimum_compression_size=size)
    api.on_method("GET")

    template = assertions.Template.from_stack(stack)
    template.has_resource_properties(
        "AWS::ApiGateway::RestApi", {"MinimumCompressionSize": size}
    )


def test_should_render_api_options(stack):
    api = RestApi(
        stack,
        "Api",
        description="books api",
        endpoint_types=[EndpointType.REGIONAL],
        api_key_source_type=ApiKeySourceType.HEADER,
        binary_media_types=["image/png"],
    )
    api.on_method("GET")

    template = assertions.Template.from_stack(stack)
    template.has_resource_properties(
        "AWS::ApiGateway::RestApi",
        {
            "Name": "Api",
            "Description": "books api",
            "EndpointConfiguration": {"Types": ["REGIONAL"]},
            "ApiKeySourceType": "HEADER",
            "BinaryMediaTypes": ["image/png"],
        },
    )


def test_should_clone_from_other_api(stack):
    source = RestApi(stack, "Source", deploy=False, cloud_watch_role=False)
    clone = RestApi(stack, "Clone", rest_api_name="cloned", clone_from=source)
    clone.on_method("GET")

    template = assertions.Template.from_stack(stack)
    template.has_resource_properties(
        "AWS::ApiGateway::RestApi",
        {"Name": "cloned", "CloneFrom": {"Ref": logical_id(stack, source)}},
    )


def test_should_fall_back_to_default_integration(stack):
    api = RestApi(
        stack, "Api", default_integration=HttpIntegration("https://example.com")
    )
    api.on_method("GET")

    template = assertions.Template.from_stack(stack)
    template.has_resource_properties(
        "AWS::ApiGateway::Method",
        {
            "HttpMethod": "GET",
            "Integration": {
                "Type": "HTTP_PROXY",
                "Uri": "https://example.com",
                "IntegrationHttpMethod": "GET",
            },
        },
    )


def test_should_prefer_explicit_integration_over_default(stack):
    api = RestApi(
        stack, "Api", default_integration=HttpIntegration("https://example.com")
    )
    api.on_method("POST", HttpIntegration("https://other.example.com", http_method="POST"))

    template = assertions.Template.from_stack(stack)
    template.has_resource_properties(
        "AWS::ApiGateway::Method",
        {"Integration": {"Uri": "https://other.example.com"}},
    )


def test_should_use_mock_integration_without_default(stack):
    api = RestApi(stack, "Api")
    api.on_method("GET")

    template = assertions.Template.from_stack(stack)
    template.has_resource_properties(
        "AWS::ApiGateway::Method", {"Integration": {"Type": "MOCK"}}
    )


def test_should_grant_invoke_to_principal(stack):
    api = RestApi(stack, "Api")
    api.on_method("GET")
    invokers = Group(stack, "Invokers")

    api.grant_invoke(invokers, stage="prod")

    template = assertions.Template.from_stack(stack)
    policy = next(iter(template.find_resources("AWS::IAM::Policy").values()))
    statement = policy["Properties"]["PolicyDocument"]["Statement"][0]
    assert statement["Action"] == "execute-api:Invoke"
    assert "/prod/*/*" in json.dumps(statement["Resource"])
