#!/usr/bin/env python3
"""
Filewatcher - wait for a file to appear or to be updated

Purpose:
- Poll for a target path (or a single-wildcard pattern) until it exists
- Poll an existing file until its modification time advances
- Allow only one watcher per target via an exclusive lock file
"""

__version__ = "0.1.0"
