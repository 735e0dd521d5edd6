"""Compliance matching shared by placement, capacity and migration."""

from collections.abc import Iterable


def satisfies(
    cell_features: Iterable[str] | None,
    required_features: Iterable[str] | None,
) -> bool:
    """Return True when a cell offers every required compliance feature.

    An empty or missing requirement is satisfied by any cell.

    Example:
        >>> satisfies({"HIPAA", "SOC2"}, {"HIPAA"})
        True
        >>> satisfies({"SOC2"}, {"HIPAA"})
        False
    """
    required = set(required_features or ())
    if not required:
        return True
    return required <= set(cell_features or ())


def match_score(
    cell_features: Iterable[str] | None,
    required_features: Iterable[str] | None,
) -> tuple[bool, int]:
    """Rank how closely a compliant cell fits a requirement set.

    Returns ``(exact_match, extra_features)``. Sorting candidates by
    ``(not exact_match, extra_features)`` puts exact matches first, then the
    cells offering the fewest unused features. Only meaningful for cells
    that already satisfy the requirement.
    """
    offered = set(cell_features or ())
    required = set(required_features or ())
    return offered == required, len(offered - required)
