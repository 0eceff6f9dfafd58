from .http_response import HTTPResponse as HTTPResponse
from .url import URL as URL
