"""Samba share and account administration on top of smb.conf."""

from sambadmin.version import get_version

__all__ = ["get_version"]
