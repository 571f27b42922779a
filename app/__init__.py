"""
Booking Assistant HTTP API.
"""
