"""Rack-based stock-take: scan racks, sync the master list, reconcile."""

__version__ = "0.1.0"
