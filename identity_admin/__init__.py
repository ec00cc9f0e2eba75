"""Identity Toolkit admin client package.

To manage tenants:
    from identity_admin.core.idtoolkit import TenantManager, TenantArgs

To describe password hashes for user import:
    from identity_admin.core.hashes import Scrypt, Sha256

To load configuration:
    from identity_admin.config import load_settings
"""
# Note: submodules are not imported here so that the version string can be
# read by the HTTP client without import cycles.

__version__ = "0.4.0"
