"""
Code shared by every layer that must not depend on the HTTP package.

Contents
--------
- errors
    Error taxonomy carrying the HTTP status each error maps to.
"""
