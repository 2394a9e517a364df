"""
Settings package: the persisted settings document and locale formatting.

This package provides:

- :mod:`FlowUtilities.settings.lib` – Settings document schema, validation, persistence and token resync.
- :mod:`FlowUtilities.settings.locale` – Babel-based currency and decimal formatting.
"""
