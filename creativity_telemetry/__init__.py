"""
Creativity Lab Telemetry
Behavioral telemetry for AI-assisted creativity task sessions (AUT, RAT, DAT)
"""

__version__ = "1.0.0"
