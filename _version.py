"""
Bonus Engine Version Information

Package version, kept in step with ``pyproject.toml`` and reported by the
``bonus-engine --version`` flag. Follows Semantic Versioning 2.0.0:
- MAJOR: Incompatible changes to scoring or allocation results
- MINOR: New strategies or collaborators in a backwards-compatible manner
- PATCH: Backwards-compatible bug fixes

Version History:
- 1.1.1: Step buckets for small cohorts, hybrid requires tiers, case-insensitive level weights
- 1.1.0: Async batch scoring jobs with TTL task cache, allocation summaries
- 1.0.0: Three-dimensional scoring and five allocation strategies
"""

__version__ = "1.1.1"

# Set by release builds
__git_sha__ = None


def get_full_version() -> str:
    """Version string with the short git sha appended when known."""
    version = __version__
    if __git_sha__:
        version += f"+{__git_sha__[:7]}"
    return version
