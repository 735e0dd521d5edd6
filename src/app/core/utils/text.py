"""Text processing utilities for tenant subdomains and cell names."""

import re
from uuid import uuid4

from app.core.constants import (
    BACKEND_POOL_SUFFIX,
    CELL_SUFFIX_LENGTH,
    MAX_SUBDOMAIN_LENGTH,
)


def generate_subdomain(name: str, max_length: int = MAX_SUBDOMAIN_LENGTH) -> str:
    """Generate a DNS-label-safe subdomain from an organization name.

    Lowercases, drops anything that is not a letter, digit, space or
    hyphen, collapses runs of spaces/hyphens/underscores into one hyphen
    and trims hyphens from both ends.

    Examples:
        >>> generate_subdomain("Contoso Health, Inc.")
        'contoso-health-inc'
        >>> generate_subdomain("  Fabrikam__Labs ")
        'fabrikam-labs'
    """
    label = name.lower().strip()
    label = re.sub(r"[^a-z0-9\s_-]", "", label)
    label = re.sub(r"[-\s_]+", "-", label)
    return label[:max_length].strip("-")


def generate_cell_name(prefix: str, region: str) -> str:
    """Build a unique cell name such as ``shared-eastus-1a2b3c4d``.

    The prefix encodes the placement style; the capacity monitor relies on
    it to spot isolated tenants sitting on shared cells.
    """
    return f"{prefix}-{region}-{uuid4().hex[:CELL_SUFFIX_LENGTH]}"


def backend_pool_for(cell_name: str) -> str:
    """Routing backend pool name for a cell."""
    return f"{cell_name}{BACKEND_POOL_SUFFIX}"
