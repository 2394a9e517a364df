"""Host package: the capability interface the plugin runs against.

- :mod:`FlowUtilities.host.host` – :class:`HostAPI`, token handles and :class:`LocalHost`,
  a file-backed implementation used standalone and in tests.
"""
