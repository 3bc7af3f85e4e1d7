"""Test package for the Typing Trainer.

This package contains unit tests for the typing test session engine and
headless smoke tests for the pygame shell.  The UI tests use pygame's dummy
video driver to avoid opening real windows.  To run these tests, execute
``pytest`` from the project root.
"""
