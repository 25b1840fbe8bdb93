"""Catalog domain logic.

pricing, geo, availability and product_validation are pure (no I/O) and unit-tested
directly. catalog and home take an AsyncSession from the route and never commit;
the session dependency owns the transaction.
"""
