"""Application-wide Qt signals for FlowUtilities.

This module provides:
    - Signals: custom Qt signals for settings changes, token lifecycle and value
      updates, and error reporting.
    - signals: the shared instance observers connect to.
"""
from PySide6 import QtCore


class Signals(QtCore.QObject):
    """Centralized Qt signals for settings, token and error events."""
    settingsChanged = QtCore.Signal(object)  # Settings document

    tokenCreated = QtCore.Signal(str)  # Token id
    tokenRemoved = QtCore.Signal(str)  # Token id
    tokenValueChanged = QtCore.Signal(str, object)  # Token id, value

    comparisonStarted = QtCore.Signal(str)
    comparisonEnded = QtCore.Signal(str, object)  # Name, totals entry

    error = QtCore.Signal(str)
    errorLogged = QtCore.Signal(str)


signals = Signals()
