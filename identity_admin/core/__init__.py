"""Core Logic Module

Module Structure:
    - idtoolkit/    : Identity Toolkit Admin API client (tenants, errors, transport)
    - hashes.py     : Password hash descriptors for user import
    - validators.py : Argument validation shared by the tenant manager

Usage Pattern:
    Import explicitly when needed:
        from identity_admin.core.idtoolkit import TenantManager
        from identity_admin.core.hashes import Pbkdf2Sha256
        from identity_admin.core.validators import validate_tenant_id
"""
