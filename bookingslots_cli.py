#!/usr/bin/env python3
"""
Convenience entry point for running bookingslots directly.

Usage: python bookingslots_cli.py [command] [options]
"""

from bookingslots.cli.app import app

if __name__ == "__main__":
    app()
