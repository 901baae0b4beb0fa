"""Stream source catalogs.

The radio and TV catalogs are static configuration: immutable, built once at
import time and optionally replaced at startup from a JSON catalog file.
"""
