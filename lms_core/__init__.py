"""Core (UI-agnostic) LMS dashboard logic.

This package contains:
- feed transport (local CSV files or HTTP URLs)
- record parsing (CSV text -> pandas)
- date normalization and status classification
- aggregation by module and by centre, indexed by date
- date-range filtering and payload assembly (JSON-serializable lists)
- view filters and page compute functions
- chart helpers (Altair -> Vega-Lite spec dict)
"""
