from .tenancy import Vendor, Branch
from .customers import Customer, PointsTransaction, KIND_EARN, KIND_REDEEM, TRANSACTION_KINDS
from .settings import VendorSettings
from .events import EventLog, EVENT_WHATSAPP, EVENT_SYSTEM, EVENT_KINDS

__all__ = [
    'Vendor', 'Branch',
    'Customer', 'PointsTransaction', 'KIND_EARN', 'KIND_REDEEM', 'TRANSACTION_KINDS',
    'VendorSettings',
    'EventLog', 'EVENT_WHATSAPP', 'EVENT_SYSTEM', 'EVENT_KINDS',
]
