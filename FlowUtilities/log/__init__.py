"""
Logging subsystem for FlowUtilities.

Modules:

- :mod:`FlowUtilities.log.log` – Root logger setup, Qt message bridge and the in-memory log tank.
"""
