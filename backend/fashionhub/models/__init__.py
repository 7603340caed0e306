from .catalog import Product, Supplier
from .purchasing import PurchaseOrder, PurchaseOrderLine
from .sales import Sale, SaleLine, Draft, DraftLine
from .documents import DocumentSequence
from .auth import User, SessionToken

__all__ = [
    'Product', 'Supplier',
    'PurchaseOrder', 'PurchaseOrderLine',
    'Sale', 'SaleLine', 'Draft', 'DraftLine',
    'DocumentSequence',
    'User', 'SessionToken',
]
