"""
UI test automation for the Wikipedia Android app, driven through Appium.
"""

__version__ = "0.1.0"
