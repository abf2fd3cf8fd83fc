"""
Core business logic components.

This package contains:
- Expiring short URL store
- Shortcode generation and validation
- Log shipper and collector token manager
- Metrics collection
"""
