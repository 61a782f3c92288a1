"""
Business-logic actions over a WSGI routing mux: actions receive their
parameters and return a result and a status, optional validation steps run
before them, and results are converted to text, binary or JSON responses.
"""

from .action import ActionDispatcher, handle_action
from .config import Settings
from .context import RequestCancelled, RequestContext
from .params import BodyDecodeError, ParamBuilder, ParamHandler, RequestParams
from .params import single_param
from .results import EMPTY, Empty, JSONValue, RawStream, Resource, Result, Text
from .results import status_bad_request, status_error
from .results import status_internal_server_error, status_not_found, status_ok
from .router import Router
from .validation import ActionFunc, ActionHandle, ErrorList, Errors
from .validation import ValidationRegistry, ValidationStep, new_errors

__all__ = [
    'ActionDispatcher', 'handle_action',
    'Settings',
    'RequestCancelled', 'RequestContext',
    'BodyDecodeError', 'ParamBuilder', 'ParamHandler', 'RequestParams',
    'single_param',
    'EMPTY', 'Empty', 'JSONValue', 'RawStream', 'Resource', 'Result', 'Text',
    'status_bad_request', 'status_error', 'status_internal_server_error',
    'status_not_found', 'status_ok',
    'Router',
    'ActionFunc', 'ActionHandle', 'ErrorList', 'Errors', 'ValidationRegistry',
    'ValidationStep', 'new_errors',
]
