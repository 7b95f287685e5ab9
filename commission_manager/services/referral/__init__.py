"""
Referral services package.

- chain_resolver: walks referred_by links from a seller to the root
"""

from commission_manager.services.referral.chain_resolver import (
    ReferralChainEntry,
    ReferralChainResolver,
)


__all__ = [
    "ReferralChainEntry",
    "ReferralChainResolver",
]
