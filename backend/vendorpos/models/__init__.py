from .tenancy import Vendor
from .auth import SessionToken
from .inventory import StockItem
from .customers import CustomerProfile, PointsLedgerEntry
from .sales import Sale, SaleLine, CustomerPurchase

__all__ = [
    'Vendor', 'SessionToken',
    'StockItem',
    'CustomerProfile', 'PointsLedgerEntry',
    'Sale', 'SaleLine', 'CustomerPurchase',
]
