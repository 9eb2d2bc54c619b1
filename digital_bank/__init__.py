"""
Digital Bank

User registration, authentication and profile management for the digital
banking demo, served as a versioned REST API.
"""

__version__ = "1.0.0"
