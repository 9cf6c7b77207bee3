from typing import Optional


class FlowException(Exception):
    """
    This is the base exception for all flow bot exceptions
    """
    def __init__(self, message: str, status_code: int):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message, self.status_code)

    def __str__(self) -> str:
        return self.message

class ConfigurationException(FlowException):
    """
    This is the exception for missing or invalid startup configuration
    """
    def __init__(self, message: str):
        self.message = message
        self.status_code = 500
        super().__init__(message=self.message, status_code=self.status_code)

class MalformedFlowException(FlowException):
    """
    This is the exception for an invalid conversation flow document
    """
    def __init__(self, message: str):
        self.message = message
        self.status_code = 500
        super().__init__(message=self.message, status_code=self.status_code)

class TemplateBuildException(FlowException):
    """
    This is the exception for a node that cannot be turned into a messenger template
    """
    def __init__(self, message: str):
        self.message = message
        self.status_code = 400
        super().__init__(message=self.message, status_code=self.status_code)

class DeliveryException(FlowException):
    """
    This is the base exception for all messenger delivery failures
    """
    def __init__(self, message: str, status_code: int = 502):
        self.message = message
        self.status_code = status_code
        super().__init__(message=self.message, status_code=self.status_code)

class MessengerApiException(DeliveryException):
    """
    This is the exception when the messenger API rejects a payload
    """
    def __init__(self, message: str, response_status: int, response_body: Optional[str] = None):
        self.response_status = response_status
        self.response_body = response_body
        super().__init__(message=message, status_code=502)

class MessengerNoResponseException(DeliveryException):
    """
    This is the exception when no response is received from the messenger API
    """
    def __init__(self, message: str):
        super().__init__(message=message, status_code=504)
