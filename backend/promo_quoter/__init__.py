"""
Promo Quoter - cart quoting and order confirmation service
"""
__version__ = "1.0.0"
