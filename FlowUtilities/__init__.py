"""
FlowUtilities: comparison timers and derived values published as flow tokens.

This package provides:

- :mod:`FlowUtilities.core` – Token registry, timer/comparison engine, flow action dispatch and the app service object.
- :mod:`FlowUtilities.host` – The host capability interface and a local, file-backed implementation.
- :mod:`FlowUtilities.settings` – Settings document schema, persistence and Babel-based locale formatting.
- :mod:`FlowUtilities.status` – Status codes and the exceptions raised to flow actions.
- :mod:`FlowUtilities.log` – Logging setup with an in-memory log tank.

Use :func:`FlowUtilities.start` to bootstrap the plugin against a host.
"""

import sys

# Fail on Python < 3.11
if not (sys.version_info.major == 3 and sys.version_info.minor >= 11):
    raise RuntimeError('FlowUtilities requires Python 3.11 or higher.')

__version__ = '1.0.0'
__app_id__ = 'com.flow.utilities'
__author__ = 'Gergely Wootsch'
__license__ = 'GPL-3.0'
__copyright__ = 'Copyright (C) 2025 Gergely Wootsch'
__description__ = 'FlowUtilities: comparison timers, durations, currency and calculations as flow tokens.'

from .log import log

log.setup_logging()


def start(host=None):
    """Construct the app service object and run its startup sequence.

    Args:
        host (FlowUtilities.host.host.HostAPI, optional): The host runtime. Defaults to a
            :class:`FlowUtilities.host.host.LocalHost` using the default settings location.

    Returns:
        FlowUtilities.core.app.App: The initialized app.
    """
    from .core import app
    from .host import host as _host

    if host is None:
        host = _host.LocalHost()

    instance = app.App(host)
    instance.on_init()
    return instance
