"""
grantledger Policy - admin authority and address checks
"""

from grantledger.policy.authority import AdminAuthority

__all__ = ["AdminAuthority"]
