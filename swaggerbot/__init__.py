"""Sync OpenAPI/Swagger documents into a GitHub repository.

The package is driven from CI pipelines through :mod:`swaggerbot.cli`. The
core workflow lives in :mod:`swaggerbot.sync`; it resolves spec sources with
:mod:`swaggerbot.sources` and talks to GitHub through
:mod:`swaggerbot.github`.
"""

from __future__ import annotations

__version__ = "0.1.0"
