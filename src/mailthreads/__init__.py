# ABOUTME: Package initialization for mailthreads threaded email storage
# ABOUTME: Defines version and sets up package-level logging configuration
"""mailthreads - Threaded views over stored email discussions"""

__version__ = "0.1.0"

# Set up logging for the package
import logging

logging.getLogger(__name__).addHandler(logging.NullHandler())
