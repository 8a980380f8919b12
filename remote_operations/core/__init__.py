"""Core utilities and shared infrastructure.

- config: Configuration loading and validation
- constants: Named defaults, environment variable names, HTTP codes
- exceptions: Lifecycle exception hierarchy
"""
