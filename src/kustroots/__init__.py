"""kustroots: find the kustomization roots a repository needs to rebuild.

Scans a checkout for kustomization.yaml / kustomization.yml files, maps the
directories that hold them to repository-root relative paths, and optionally
narrows them to the roots touched by the last commit.

Public API:
- ResolverConfig
- RootResolver
- Resolution
"""

from .config import ResolverConfig
from .models import Resolution, ResolveMode
from .resolver import RootResolver, resolve_roots

__all__ = ["ResolverConfig", "RootResolver", "Resolution", "ResolveMode", "resolve_roots"]
