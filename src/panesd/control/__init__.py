"""HTTP control surface module for panesd.

A small FastAPI app that reports session status, toggles interactive
mode, and navigates the wall on request.
"""
