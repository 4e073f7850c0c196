"""
Domain layer containing core business logic.

Submodules:
- streams: Path segment classification, display-name enrichment and page assembly.
"""
