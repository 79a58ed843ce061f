from .holding import ASSET_TYPES, AssetType, Holding
from .transaction import TRANSACTION_TYPES, SettlementState, Transaction, TransactionType
