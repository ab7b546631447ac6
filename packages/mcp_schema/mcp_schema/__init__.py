"""Schema flattening utilities for MCP servers."""

from .schema import FlatBaseModel, OutputBaseModel, flatten_schema

__all__ = ["FlatBaseModel", "OutputBaseModel", "flatten_schema"]
