"""
Real-estate commission manager.

Records agents, properties, commission levels and the referral hierarchy,
and computes an auditable commission ledger for property sales.
"""

__version__ = "1.0.0"
