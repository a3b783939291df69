"""
slotplanner - appointment availability and contact retry scheduling.
"""

__version__ = "0.3.0"
