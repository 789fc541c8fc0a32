#!/usr/bin/env python3
"""Command-line runner for a source checkout"""
from lnkbackup.cli import main

if __name__ == '__main__':
    main()
