"""Configuration package: settings, logging, scoring constants and prompts."""
