"""
                        Services Module

Business logic shared by the API routes and the Celery worker.

Services:
    - orders: order lifecycle, Kitchen Display and Order Status Screen views
    - events: in-process broker feeding the display websockets
    - metrics: dashboard aggregates
    - qr: styled table QR codes
    - excel_manager: file-locked Excel ledger of served orders
"""

from qrmenu.services.events import OrderEventBroker, get_event_broker
from qrmenu.services.excel_manager import ExcelManager

__all__ = ["ExcelManager", "OrderEventBroker", "get_event_broker"]
