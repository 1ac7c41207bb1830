"""Segment-wise glob matching for workspace patterns."""

from functools import lru_cache


def normalize_pattern(pattern: str) -> str:
    """Normalize a workspace pattern before matching.

    Strips whitespace, a leading ``./``, trailing slashes, and converts
    backslashes to forward slashes.

    Args:
        pattern: Raw pattern from package.json or pnpm-workspace.yaml.

    Returns:
        Normalized pattern.
    """
    normalized = pattern.strip().replace("\\", "/")
    if normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized.rstrip("/")


def match_workspace_pattern(relative_path: str, pattern: str) -> bool:
    """Match a root-relative directory path against a workspace pattern.

    A literal segment matches itself, ``*`` matches exactly one segment and
    ``**`` matches zero or more segments. The whole path must be consumed
    when the whole pattern is consumed; there is no prefix matching.

    Args:
        relative_path: Directory path relative to the project root.
        pattern: Workspace glob pattern.

    Returns:
        True if the path matches the pattern.
    """
    path_segments = tuple(s for s in relative_path.replace("\\", "/").split("/") if s)
    pattern_segments = tuple(s for s in pattern.split("/") if s)

    @lru_cache(maxsize=None)
    def matches(path_idx: int, pattern_idx: int) -> bool:
        if pattern_idx == len(pattern_segments):
            return path_idx == len(path_segments)

        segment = pattern_segments[pattern_idx]

        if segment == "**":
            # Zero segments, or consume one and stay on the same "**"
            if matches(path_idx, pattern_idx + 1):
                return True
            return path_idx < len(path_segments) and matches(path_idx + 1, pattern_idx)

        if path_idx >= len(path_segments):
            return False

        if segment == "*" or segment == path_segments[path_idx]:
            return matches(path_idx + 1, pattern_idx + 1)

        return False

    return matches(0, 0)
