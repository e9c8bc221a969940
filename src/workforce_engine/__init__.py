"""Computation engine for guard-staffing operations: scheduling conflicts,
rate resolution, payroll aggregation, invoice grouping and geofencing."""

__version__ = "1.0.0"
