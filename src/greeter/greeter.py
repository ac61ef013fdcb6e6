import boto3
import json
import logging
import os

logging.basicConfig(format="%(asctime)s %(name)s %(levelname)s %(message)s")
logger = logging.getLogger("greeter")
logger.setLevel(os.environ.get("LOGGING", logging.DEBUG))

DEFAULT_GREETING = "Hello"
DEFAULT_NAME = "world"


def notify_cloudwatch(function):
    def wrapper(*args, **kwargs):
        incoming_event = args[0]  # ...event
        function_name = args[1].function_name
        logger.info(f"'{function_name}' - entry.\nIncoming event: '{incoming_event}'")
        result = function(*args, **kwargs)
        logger.info(f"'{function_name}' - exit.\n\nResult: '{result}'")
        return result

    return wrapper


class Greeter:
    """Answers `GET /greet` and `GET /greet/{name}` behind an API Gateway proxy integration.

    The greeting itself is read from SSM so it can change without a redeploy.
    """

    def __init__(self) -> None:
        self.logger = logging.getLogger(self.__class__.__name__)
        self.logger.setLevel(os.environ.get("LOGGING", logging.DEBUG))
        self.ssm_client = boto3.client("ssm")
        self.greeting = self._load_greeting(os.environ.get("GREETING_PARAMETER"))

    def _load_greeting(self, parameter_name):
        if not parameter_name:
            return DEFAULT_GREETING
        try:
            return self.ssm_client.get_parameter(Name=parameter_name)["Parameter"][
                "Value"
            ]
        except self.ssm_client.exceptions.ParameterNotFound:
            self.logger.info(f"Parameter '{parameter_name}' not found, using default.")
            return DEFAULT_GREETING

    def _extract_name(self, event):
        path_parameters = event.get("pathParameters") or {}
        return path_parameters.get("name", DEFAULT_NAME)

    def _get_return_message(self, message, status_code=200):
        return {"statusCode": status_code, "body": json.dumps({"message": message})}

    def handle_event(self, event):
        try:
            name = self._extract_name(event)
            result = self._get_return_message(message=f"{self.greeting}, {name}!")
        except Exception as e:
            self.logger.exception(e)
            result = self._get_return_message(
                message=f"500 - error processing incoming event: {e}",
                status_code=500,
            )
        return result


@notify_cloudwatch
def greeter_handler(event, context) -> dict:
    return Greeter().handle_event(event)
