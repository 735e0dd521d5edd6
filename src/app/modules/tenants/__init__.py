"""Tenants module - tenant registration, routing lookups and migration."""

# Module metadata
__module_info__ = {
    "name": "tenants",
    "version": "1.0.0",
    "description": "Tenant registration, routing lookups and migration",
    "dependencies": ["cells"],
}
