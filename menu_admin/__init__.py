"""
                Digital Menu Admin

Administrative API for a digital-menu / food-ordering business:
products, categories, delivery pricing, operating hours, store status
and orders, bound to a hosted backend-as-a-service.
"""

__version__ = "1.0.0"
