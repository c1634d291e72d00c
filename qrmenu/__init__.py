"""
                QR Menu Platform

Restaurant menu management backend: admin back-office, QR-driven
public menu, order lifecycle with a Kitchen Display and an Order
Status Screen.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
