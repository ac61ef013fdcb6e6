import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from aws_cdk import Stack, aws_apigateway as _aws_apigateway
from constructs import Construct
from gatewaykit.patterns.apigateway.deployment import Deployment
from gatewaykit.patterns.common import (
    ConfigurationConflictException,
    ValidationException,
)

DEFAULT_STAGE_NAME = "prod"


class MethodLoggingLevel(Enum):
    OFF = "OFF"
    ERROR = "ERROR"
    INFO = "INFO"


@dataclass
class StageOptions:
    stage_name: Optional[str] = None
    description: Optional[str] = None
    variables: Optional[Dict[str, str]] = None
    tracing_enabled: Optional[bool] = None
    cache_cluster_enabled: Optional[bool] = None
    cache_cluster_size: Optional[str] = None
    client_certificate_id: Optional[str] = None
    logging_level: Optional[MethodLoggingLevel] = None
    metrics_enabled: Optional[bool] = None
    data_trace_enabled: Optional[bool] = None
    throttling_rate_limit: Optional[float] = None
    throttling_burst_limit: Optional[int] = None


class Stage(Construct):
    """Named, addressable pointer to a deployment."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        deployment: Deployment,
        options: Optional[StageOptions] = None,
    ) -> None:
        options = options or StageOptions()
        cache_cluster_enabled = self._cache_cluster_enabled(options)
        super().__init__(scope, construct_id)
        self.logger = logging.getLogger(self.__class__.__name__)
        self.logger.setLevel(os.environ.get("LOGGING", logging.DEBUG))

        self.deployment = deployment
        self.rest_api = deployment.api
        self.stage_name = options.stage_name or DEFAULT_STAGE_NAME

        resource = _aws_apigateway.CfnStage(
            self,
            "Resource",
            rest_api_id=self.rest_api.rest_api_id,
            deployment_id=deployment.deployment_id,
            stage_name=self.stage_name,
            description=options.description,
            variables=options.variables,
            tracing_enabled=options.tracing_enabled,
            cache_cluster_enabled=cache_cluster_enabled,
            cache_cluster_size=options.cache_cluster_size,
            client_certificate_id=options.client_certificate_id,
            method_settings=self._render_method_settings(options),
        )
        self.stage_id = resource.ref
        self.logger.debug(f"Stage '{self.stage_name}' created at '{self.node.path}'")

    def url_for_path(self, path: str = "/") -> str:
        """Returns the invoke URL for a path of this stage."""
        if not path.startswith("/"):
            raise ValidationException(f'Path must begin with "/": {path}')
        stack = Stack.of(self)
        return (
            f"https://{self.rest_api.rest_api_id}.execute-api.{stack.region}"
            f".{stack.url_suffix}/{self.stage_name}{path}"
        )

    @staticmethod
    def _cache_cluster_enabled(options: StageOptions) -> Optional[bool]:
        if options.cache_cluster_size is None:
            return options.cache_cluster_enabled
        if options.cache_cluster_enabled is None:
            return True
        if not options.cache_cluster_enabled:
            raise ConfigurationConflictException(
                f"Cannot set 'cache_cluster_size' to '{options.cache_cluster_size}' "
                "and 'cache_cluster_enabled' to False"
            )
        return True

    @staticmethod
    def _render_method_settings(options: StageOptions):
        settings = dict(
            logging_level=options.logging_level.value
            if options.logging_level
            else None,
            metrics_enabled=options.metrics_enabled,
            data_trace_enabled=options.data_trace_enabled,
            throttling_rate_limit=options.throttling_rate_limit,
            throttling_burst_limit=options.throttling_burst_limit,
        )
        if all(value is None for value in settings.values()):
            return None
        return [
            _aws_apigateway.CfnStage.MethodSettingProperty(
                http_method="*", resource_path="/*", **settings
            )
        ]
