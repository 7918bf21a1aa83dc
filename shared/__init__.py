"""
Shared Kernel

Value objects, the domain error taxonomy and the small pieces of DRF
infrastructure (exception handler, pagination) shared by every app.
"""
