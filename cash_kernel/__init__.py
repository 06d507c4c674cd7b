"""
Cash Kernel

Daily cash-drawer reconciliation between a front safe (register) and a
back safe (vault):
- Expected vs. counted front-safe balance with discrepancy flagging
- Back-safe transfers and withdrawals with conservation checks
- Journaled balance movements, replayable and verifiable
- Month close with starting-balance carry-forward
"""

__version__ = "0.1.0"
