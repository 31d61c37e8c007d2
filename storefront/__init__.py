"""Storefront catalog core.

Category hierarchy maintenance and variation pricing/inventory rules over a
document storage port.
"""
