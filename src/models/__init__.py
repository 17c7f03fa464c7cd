from src.models.account import Account, AccountRead, AccountRow, PendingCode, ProfileRead

__all__ = [
    "Account",
    "AccountRead",
    "AccountRow",
    "PendingCode",
    "ProfileRead",
]
