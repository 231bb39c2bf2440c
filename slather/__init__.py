"""Slather - declarative macOS onboarding."""

__version__ = "0.1.0"
