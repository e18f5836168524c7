import os
import time

from aws_cdk import (
    Stack,
    Duration,
    CfnOutput,
    Tags,
    aws_appsync as appsync,
    aws_iam as iam,
    aws_lambda as lambda_,
    aws_logs as logs,
    aws_secretsmanager as secretsmanager,
)
from constructs import Construct

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
LAMBDA_DIR = os.path.join(BASE_DIR, "lambda")
GRAPHQL_DIR = os.path.join(os.path.dirname(BASE_DIR), "graphql")

DEFAULTS = {
    "appName": "StripeWebhookWithAppsync",
    "apiKeyExpiryDays": 365,
    "ackMessageVersion": "v1",
    "signatureToleranceSeconds": 300,
    "logLevel": "INFO",
}


def _read(name: str) -> str:
    with open(os.path.join(GRAPHQL_DIR, name), encoding="utf-8") as f:
        return f.read()


class StripeWebhookStack(Stack):

    def __init__(self, scope: Construct, construct_id: str, **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        app_name = self._context("appName")
        Tags.of(self).add("App", app_name)

        # 1) Log role for AppSync
        log_role = iam.Role(
            self, "SWWALogRole",
            assumed_by=iam.ServicePrincipal("appsync.amazonaws.com"),
            description="Allows AppSync to write logs to CloudWatch"
        )
        log_role.add_to_policy(
            iam.PolicyStatement(
                effect=iam.Effect.ALLOW,
                resources=["*"],
                actions=[
                    "logs:CreateLogGroup",
                    "logs:CreateLogStream",
                    "logs:PutLogEvents",
                ]
            )
        )

        # 2) GraphQL API, schema and API key
        api = appsync.CfnGraphQLApi(
            self, "SWWAAPI",
            name="SWWAAPI",
            authentication_type="API_KEY",
            xray_enabled=True,
            log_config=appsync.CfnGraphQLApi.LogConfigProperty(
                field_log_level="ALL",
                cloud_watch_logs_role_arn=log_role.role_arn,
                exclude_verbose_content=False
            )
        )

        schema = appsync.CfnGraphQLSchema(
            self, "SWWAAPISchema",
            api_id=api.attr_api_id,
            definition=_read("schema.graphql")
        )

        expiry_days = int(self._context("apiKeyExpiryDays"))
        api_key = appsync.CfnApiKey(
            self, "SWWAAPIAPIKey",
            api_id=api.attr_api_id,
            expires=int(time.time()) + expiry_days * 24 * 60 * 60
        )

        # 3) Signing secret, filled in after deploy with the Stripe endpoint secret
        webhook_secret = secretsmanager.Secret(
            self, "StripeWebhookSecret",
            description="Stripe webhook signing secret (whsec_...)"
        )

        # 4) Webhook handler
        webhook_function = lambda_.Function(
            self, "WebhookFunction",
            runtime=lambda_.Runtime.PYTHON_3_11,
            handler="webhook_handler.handler",
            code=lambda_.Code.from_asset(LAMBDA_DIR),
            timeout=Duration.seconds(10),
            log_retention=logs.RetentionDays.ONE_WEEK,
            environment={
                "STRIPE_WEBHOOK_SECRET_ARN": webhook_secret.secret_arn,
                "ACK_MESSAGE_VERSION": str(self._context("ackMessageVersion")),
                "SIGNATURE_TOLERANCE_SECONDS": str(self._context("signatureToleranceSeconds")),
                "LOG_LEVEL": str(self._context("logLevel")),
            }
        )
        webhook_secret.grant_read(webhook_function)

        # 5) Lambda data source and resolver
        invoke_role = iam.Role(
            self, "LambdaInvokeRole",
            assumed_by=iam.ServicePrincipal("appsync.amazonaws.com"),
            description="Allows AppSync to invoke the webhook function"
        )
        invoke_role.add_to_policy(
            iam.PolicyStatement(
                effect=iam.Effect.ALLOW,
                resources=[webhook_function.function_arn],
                actions=["lambda:InvokeFunction"]
            )
        )

        data_source = appsync.CfnDataSource(
            self, "LambdaDataSource",
            api_id=api.attr_api_id,
            name="LambdaDataSource",
            type="AWS_LAMBDA",
            lambda_config=appsync.CfnDataSource.LambdaConfigProperty(
                lambda_function_arn=webhook_function.function_arn
            ),
            service_role_arn=invoke_role.role_arn
        )

        resolver = appsync.CfnResolver(
            self, "GetWebhookResolver",
            api_id=api.attr_api_id,
            type_name="Mutation",
            field_name="getWebhook",
            data_source_name=data_source.name,
            request_mapping_template=_read("get_webhook_request.vtl"),
            response_mapping_template=_read("get_webhook_response.vtl")
        )
        resolver.add_dependency(data_source)
        resolver.add_dependency(schema)

        # 6) Outputs
        CfnOutput(
            self, "GraphQLAPIURL",
            value=api.attr_graph_ql_url,
            description="The URL of the GraphQL API"
        )

        CfnOutput(
            self, "GraphQLAPIKey",
            value=api_key.attr_api_key,
            description="The API Key for the GraphQL API"
        )

        CfnOutput(
            self, "WebhookSecretArn",
            value=webhook_secret.secret_arn,
            description="Secret to fill with the Stripe webhook signing secret"
        )

    def _context(self, key: str):
        value = self.node.try_get_context(key)
        return DEFAULTS[key] if value is None else value
