"""
Utility modules for the Meetboard backend.

This package contains shared helpers used across the application:
- dates: Timestamp parsing and calendar arithmetic
- slugs: URL slug generation
- media: Image/video URL hygiene and YouTube link normalization
- logging_config: Structured logging setup
"""
