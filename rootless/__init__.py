"""
rootless — idempotent, rootless provisioning of developer tools.
"""

__version__ = "0.1.0"
