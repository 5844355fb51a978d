"""Core (UI-agnostic) sales dashboard logic.

This package contains:
- raw record normalization and field permission masking
- currency conversion and customer classification
- filter normalization and application
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
