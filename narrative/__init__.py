"""Core (UI-agnostic) logic for the Titanic narrative slideshow.

This package contains:
- record loading and normalization (CSV -> pandas -> PassengerRecord)
- filter state and normalization
- survival aggregation (global, by class, by demographic group)
- the scene state machine and event dispatcher
- scene compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
