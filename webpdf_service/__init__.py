"""
Web PDF Service - Converts web pages to PDF and compresses PDF documents.

Pages are rendered with a single long-lived Playwright/Chromium instance and
optionally compressed through Ghostscript.
"""

__version__ = "1.0.0"
