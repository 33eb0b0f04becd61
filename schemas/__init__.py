"""Pydantic and dataclass schemas shared across the dashboard."""
