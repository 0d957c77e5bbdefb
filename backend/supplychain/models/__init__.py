from .ledger import LedgerState
from .products import Product, ProductStatusType
from .stage_index import StageIndexEntry
from .transactions import ProductTransaction
from .users import UserProduct
from .notifications import Notification

__all__ = [
    'LedgerState',
    'Product', 'ProductStatusType',
    'StageIndexEntry',
    'ProductTransaction',
    'UserProduct',
    'Notification',
]
