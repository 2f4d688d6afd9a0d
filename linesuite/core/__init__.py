"""linesuite.core — Foundation layer.

Contains the shared types, the data stream reader, the transcript reporters,
errors and settings. This package has NO dependencies on linesuite.registry,
linesuite.orchestrator or linesuite.suites.
"""
