import hashlib
import json
import logging
import os
from typing import Any, List, Optional

import jsii
from aws_cdk import (
    IResolveContext,
    IStringProducer,
    Lazy,
    RemovalPolicy,
    Stack,
    aws_apigateway as _aws_apigateway,
)
from constructs import Construct
from gatewaykit.patterns.common import IRestApiRef, StateException


@jsii.implements(IStringProducer)
class _LogicalIdProducer:
    def __init__(self, deployment: "Deployment") -> None:
        self.deployment = deployment

    def produce(self, context: IResolveContext) -> str:
        return self.deployment._calculate_logical_id()


class Deployment(Construct):
    """Immutable snapshot of a REST API.

    API Gateway deployments cannot be updated in place, so the logical id of
    the underlying resource carries a fingerprint of everything registered
    through `add_to_logical_id`. Any change to the API model produces a new
    logical id and therefore a new deployment, while identical models keep
    the same one.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        api: IRestApiRef,
        description: Optional[str] = None,
        retain_deployments: bool = False,
    ) -> None:
        super().__init__(scope, construct_id)
        self.logger = logging.getLogger(self.__class__.__name__)
        self.logger.setLevel(os.environ.get("LOGGING", logging.DEBUG))

        self.api = api
        self.hash_components: List[Any] = []
        self.resource = _aws_apigateway.CfnDeployment(
            self,
            "Resource",
            rest_api_id=api.rest_api_id,
            description=description,
        )
        if retain_deployments:
            self.resource.apply_removal_policy(RemovalPolicy.RETAIN)

        self.original_logical_id = Stack.of(self).get_logical_id(self.resource)
        self.resource.override_logical_id(
            Lazy.uncached_string(_LogicalIdProducer(self))
        )
        self.deployment_id = self.resource.ref

    def add_to_logical_id(self, data: Any) -> None:
        """Adds a component to the fingerprint of this deployment.

        Components may contain tokens; they are resolved before hashing.
        """
        if self.node.locked:
            raise StateException(
                "Cannot modify the logical ID when the construct is locked"
            )
        self.logger.debug(f"Adding hash component to '{self.node.path}': {data}")
        self.hash_components.append(data)

    def _add_method_dependency(self, method: Construct) -> None:
        self.resource.node.add_dependency(method)

    def _calculate_logical_id(self) -> str:
        if not self.hash_components:
            return self.original_logical_id

        stack = Stack.of(self)
        serialized = sorted(
            json.dumps(stack.resolve(component), sort_keys=True)
            for component in self.hash_components
        )
        fingerprint = hashlib.md5(usedforsecurity=False)
        for component in serialized:
            fingerprint.update(component.encode("utf-8"))
        return self.original_logical_id + fingerprint.hexdigest()
