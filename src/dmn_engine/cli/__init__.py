"""Command-line interface for dmn-engine.

Provides commands for evaluating decisions, inspecting and validating
models, and showing the engine configuration.
"""

from .main import cli, main

__all__ = ["cli", "main"]
