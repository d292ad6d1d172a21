"""Package initialization for advanced-sitemap.

Having this file allows relative imports (e.g. `from .models import ...`) to
resolve under tooling (mypy/ruff) and matches the CLI usage pattern
`python -m advanced_sitemap build`.
"""

__all__ = []
