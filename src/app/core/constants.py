"""Application-wide constants.

This module defines constants used throughout the application
to avoid magic numbers and ensure consistency.
"""

# Regions
DEFAULT_REGION = "eastus"
MAX_REGION_LENGTH = 64

# Cell sizing
DEFAULT_MAX_TENANTS_PER_SHARED_CELL = 100
DEDICATED_CELL_CAPACITY = 1
DEFAULT_MAX_CELLS_PER_REGION = 20

# Cell naming
SHARED_CELL_PREFIX = "shared"
DEDICATED_CELL_PREFIX = "dedicated"
BACKEND_POOL_SUFFIX = "-backend"
CELL_SUFFIX_LENGTH = 8

# Capacity thresholds (ratios of max tenant count)
DEFAULT_CAPACITY_THRESHOLD = 0.8
DEFAULT_UNDERUTILIZED_THRESHOLD = 0.3

# Cost optimization score weights
SHARED_EFFICIENCY_WEIGHT = 0.6
DEDICATED_UTILIZATION_WEIGHT = 0.4

# String field lengths
MAX_NAME_LENGTH = 255
MAX_SUBDOMAIN_LENGTH = 63
MAX_CELL_NAME_LENGTH = 128
MAX_EMAIL_LENGTH = 255
MAX_COMPLIANCE_TAG_LENGTH = 32
MAX_ERROR_LENGTH = 1024

# Optimistic concurrency
INITIAL_VERSION = 1
