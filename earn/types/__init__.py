from .requests import EnterAmountBody, PoolModel, PrepareDepositBody, TokenBalanceModel

__all__ = [
    "EnterAmountBody",
    "PoolModel",
    "PrepareDepositBody",
    "TokenBalanceModel",
]
