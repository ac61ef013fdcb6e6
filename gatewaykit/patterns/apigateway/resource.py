import re
from typing import Optional

from aws_cdk import aws_apigateway as _aws_apigateway
from constructs import Construct
from gatewaykit.patterns.apigateway.integration import Integration
from gatewaykit.patterns.apigateway.method import Method, MethodOptions
from gatewaykit.patterns.common import (
    IRestApiResource,
    ValidationException,
    join_path,
)

PATH_PART_PATTERN = re.compile(r"^([a-zA-Z0-9._-]+|\{[a-zA-Z0-9._-]+\+?\})$")


class Resource(Construct):
    """A path segment of a REST API, e.g. `books` in `/books/{id}`."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        parent: IRestApiResource,
        path_part: str,
        default_integration: Optional[Integration] = None,
    ) -> None:
        if not PATH_PART_PATTERN.match(path_part):
            raise ValidationException(
                f"Resource path part must be alphanumeric (._- allowed), "
                f"'{{param}}' or '{{proxy+}}': '{path_part}'"
            )
        super().__init__(scope, construct_id)

        self.parent_resource = parent
        self.resource_api = parent.resource_api
        self.path_part = path_part
        self.resource_path = join_path(parent.resource_path, path_part)
        self.default_integration = default_integration or parent.default_integration

        resource = _aws_apigateway.CfnResource(
            self,
            "Resource",
            parent_id=parent.resource_id,
            path_part=path_part,
            rest_api_id=self.resource_api.rest_api_id,
        )
        self.resource_id = resource.ref

        deployment = self.resource_api.latest_deployment
        if deployment:
            deployment.resource.node.add_dependency(resource)
            deployment.add_to_logical_id(
                {
                    "resource": {
                        "path_part": path_part,
                        "parent_id": parent.resource_id,
                    }
                }
            )

    def add_resource(self, path_part: str) -> "Resource":
        return Resource(self, path_part, parent=self, path_part=path_part)

    def on_method(
        self,
        http_method: str,
        integration: Optional[Integration] = None,
        options: Optional[MethodOptions] = None,
    ) -> Method:
        return Method(
            self,
            http_method.upper(),
            resource=self,
            http_method=http_method,
            integration=integration,
            options=options,
        )
