"""
Utility helpers for Recruitcord: logging setup and timestamp handling.
"""
