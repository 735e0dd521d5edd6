"""Cells module - tenant placement and capacity management."""

# Module metadata
__module_info__ = {
    "name": "cells",
    "version": "1.0.0",
    "description": "Cell placement, provisioning and capacity monitoring",
    "dependencies": [],
}
