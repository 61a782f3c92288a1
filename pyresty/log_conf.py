"""
Logging configuration
"""

import logging
import os
import sys
import typing

LOGGER = logging.getLogger(__name__)

LOG_DEBUG_VAR = 'LOG_DEBUG'

# Prefix tried when a module named in LOG_DEBUG is not found as-is
PACKAGE_PREFIX = 'pyresty'

_ENABLE_ALL = frozenset({'1', 'true', 'yes', 'y'})
_DISABLE_ALL = frozenset({'0', 'false', 'no', 'n', ''})


def configure_logging(environ: typing.Mapping[str, str] | None = None
    ) -> None:
    """
    Configure the logging system according to the LOG_DEBUG variable of the
    given environment (os.environ by default):
    - '1', 'true', 'yes', 'y': everything is logged at DEBUG level.
    - '0', 'false', 'no', 'n', '' or not set: INFO level.
    - Otherwise, a comma-separated list of modules or packages whose loggers
      are set to DEBUG level, the rest staying at INFO level. See
      resolve_module_name for the accepted names.
    """

    if environ is None:
        environ = os.environ

    value = environ.get(LOG_DEBUG_VAR, '').strip()

    if value.lower() in _ENABLE_ALL:
        logging.basicConfig(level=logging.DEBUG)
        return

    logging.basicConfig(level=logging.INFO)

    if value.lower() in _DISABLE_ALL:
        return

    enabled = []
    for raw_name in value.split(','):
        mod_name = resolve_module_name(raw_name)
        if mod_name is None:
            continue

        logging.getLogger(mod_name).setLevel(logging.DEBUG)
        enabled.append(mod_name)

    LOGGER.info("Debug logging enabled for %s", ', '.join(enabled))


def resolve_module_name(name: str) -> str | None:
    """
    Returns the logger name designated by an entry of LOG_DEBUG, or None for
    a blank entry. Names of pyresty modules may omit the package prefix
    ('action' or 'web.routing'). A warning is logged if the module is not
    loaded; the name is returned anyway, since the module may be imported
    later.
    """

    name = name.strip()
    if not name:
        return None

    if name in sys.modules:
        return name

    prefixed_name = f'{PACKAGE_PREFIX}.{name}'
    if prefixed_name in sys.modules:
        return prefixed_name

    LOGGER.warning("Module %r is not loaded, setting its log level to DEBUG "
        "anyway", name)

    return name
