"""
Core package: tokens, timers and flow actions.

- :mod:`FlowUtilities.core.helpers` – Token identifiers, duration text and named calculations.
- :mod:`FlowUtilities.core.tokens` – The registry of live host tokens.
- :mod:`FlowUtilities.core.engine` – Comparison start/end, currency and calculation actions.
- :mod:`FlowUtilities.core.flows` – Flow action cards and their argument parsing.
- :mod:`FlowUtilities.core.app` – The app service object tying it together.
- :mod:`FlowUtilities.core.signals` – Qt signals for in-process observers.
"""
