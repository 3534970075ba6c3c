"""Watch storefront API.

Catalog browsing, server-side carts, checkout with manual payment methods,
order tracking and the admin back-office.
"""

__version__ = "0.1.0"
