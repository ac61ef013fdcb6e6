#!/usr/bin/env python3
import logging

import aws_cdk as cdk

from gatewaykit.gatewaykit_stack import GatewayKitStack

logging.basicConfig(format="%(asctime)s %(name)s %(levelname)s %(message)s")

app = cdk.App()

GatewayKitStack(
    scope=app,
    construct_id="gatewaykit-stack",
    stage_name=app.node.try_get_context("stage_name") or "prod",
    description="github.com/gatewaykit - greeter api and invoker group",
)

app.synth()
