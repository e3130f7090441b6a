"""Azure AD login with tenant-aware account hydration."""

__version__ = "0.1.0"
