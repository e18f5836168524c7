#!/usr/bin/env python3
import os

import aws_cdk as cdk

from infra.stripe_webhook_stack import StripeWebhookStack


app = cdk.App()
StripeWebhookStack(app, "StripeWebhookWithAppsyncStack",
    env=cdk.Environment(
        account=os.getenv('CDK_DEFAULT_ACCOUNT'),
        region=app.node.try_get_context('region') or os.getenv('CDK_DEFAULT_REGION')
    )
)

app.synth()
