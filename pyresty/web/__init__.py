"""
Web-related functions: request parsing, routing, and response handling
"""

from .request import HTTPRequest, RequestBodyWrapper
from .response import HTTPResponse, HTTPTextResponse, HTTPStreamResponse
from .response import HTTPBaseError, HTTPError, TEXT_CONTENT_TYPE
from .response import StreamBody, status_phrase
from .routing import Mux, Route, URLMatcher, METHODS, WSGIApp

__all__ = [
    'HTTPRequest', 'RequestBodyWrapper',
    'HTTPResponse', 'HTTPTextResponse', 'HTTPStreamResponse',
    'HTTPBaseError', 'HTTPError', 'TEXT_CONTENT_TYPE', 'StreamBody',
    'status_phrase',
    'Mux', 'Route', 'URLMatcher', 'METHODS', 'WSGIApp',
]
