"""
Core of schemagen.

This package contains the value helpers, the validator node types, the
reference resolver and the schema compiler.
"""
