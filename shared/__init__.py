"""
Shared Kernel

Value objects, the error taxonomy and API glue shared by every app of the
booking portal.
"""
