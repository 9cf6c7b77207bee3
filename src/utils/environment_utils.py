from dotenv import load_dotenv
import os

# Utils
from utils.log_utils import LogUtil

# Exceptions
from exceptions.flow_exception import ConfigurationException

"""
Utility class for environment variables
"""
class EnvironmentUtils:
    REQUIRED_VARIABLES = ("PAGE_ACCESS_TOKEN", "VERIFY_TOKEN")

    def __init__(self, log_util: LogUtil):

        # Load environment variables
        load_dotenv()

        # Initialize logger
        self.log_util = log_util

        # Environment variables
        self.env_variables = {
            "APP_ENV": os.getenv("APP_ENV", "production"),
            "HOST": os.getenv("HOST", "0.0.0.0"),
            "PORT": int(os.getenv("PORT", "8018")),
            "LOKI_URL": os.getenv("LOKI_URL", ""),
            "PAGE_ACCESS_TOKEN": os.getenv("PAGE_ACCESS_TOKEN", ""),
            "VERIFY_TOKEN": os.getenv("VERIFY_TOKEN", ""),
            "FLOW_FILE_PATH": os.getenv("FLOW_FILE_PATH", "public/flow.json"),
            "GRAPH_API_URL": os.getenv("GRAPH_API_URL", "https://graph.facebook.com/v19.0/me/messages"),
            "MESSENGER_TIMEOUT_SECONDS": float(os.getenv("MESSENGER_TIMEOUT_SECONDS", "5")),
            "SESSION_TIMEOUT_SECONDS": int(os.getenv("SESSION_TIMEOUT_SECONDS", "1800")),
            "SESSION_CLEANUP_INTERVAL_SECONDS": int(os.getenv("SESSION_CLEANUP_INTERVAL_SECONDS", "300")),
            "RATE_LIMIT_WINDOW_SECONDS": int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60")),
            "MAX_MESSAGES_PER_WINDOW": int(os.getenv("MAX_MESSAGES_PER_WINDOW", "20")),
            "WEBHOOK_RATE_LIMIT_WINDOW_SECONDS": int(os.getenv("WEBHOOK_RATE_LIMIT_WINDOW_SECONDS", "60")),
            "MAX_WEBHOOK_REQUESTS_PER_WINDOW": int(os.getenv("MAX_WEBHOOK_REQUESTS_PER_WINDOW", "100")),
        }

    def get_env_variable(self, variable_name: str) -> str | int | float:
        if variable_name not in self.env_variables:
            self.log_util.error(service_name="EnvironmentUtils", message=f"Environment variable {variable_name} not found")
            raise ValueError(f"Environment variable {variable_name} not found")
        return self.env_variables[variable_name]

    def validate_required(self) -> None:
        """
        Fail fast when a secret the bot cannot run without is missing
        """
        for variable_name in self.REQUIRED_VARIABLES:
            if not self.env_variables.get(variable_name):
                self.log_util.error(service_name="EnvironmentUtils", message=f"Missing {variable_name} environment variable")
                raise ConfigurationException(message=f"Missing {variable_name} environment variable")
