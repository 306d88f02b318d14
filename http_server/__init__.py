from .request import Request
from .response import Response, error_response, response
from .server import HTTPServer, RequestTooLarge

__all__ = ["HTTPServer", "Request", "RequestTooLarge", "Response", "error_response", "response"]
