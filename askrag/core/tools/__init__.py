"""
Tool-request protocol: catalog, marker parsing, executors and execution gate.

Kept import-free so sandbox child processes load only what they need.
"""
