"""panesd -- Video wall supervisor for a kiosk browser.

This package drives an unattended browser through a sequence of remotely
hosted presentations over the browser's remote debugging protocol. Pages
signal when they are done; watchdogs advance the wall when they do not,
and a small HTTP control surface allows manual override.
"""

__version__ = "0.1.0"
