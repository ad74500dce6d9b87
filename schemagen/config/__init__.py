"""
Configuration management for schemagen.

Settings are dataclasses populated from the environment; see
``settings.get_config``.
"""
