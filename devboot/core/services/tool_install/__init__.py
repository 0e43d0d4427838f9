"""
Tool install service — resolve, install, configure and verify tools.

Layers:
    domain/         pure functions (package names, error taxonomy, rollback)
    execution/      subprocess, rc file and verification side effects
    orchestration/  the retrying installer pipeline
"""
