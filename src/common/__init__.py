"""Shared helpers: logging setup and NuGet tool invocation."""
