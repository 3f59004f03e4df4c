# common/__init__.py

"""
Shared building blocks used by every inventory-facing app:
domain errors, money rounding, document numbering, payment
accumulation and the API result envelope.
"""
