"""TruckTrace – food-truck discovery API."""

__version__ = "1.0.0"
