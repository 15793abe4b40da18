"""CallFlow - webhook-driven AI receptionist for inbound phone calls"""

__version__ = "1.0.0"
