"""
CLI command groups — one module per group, registered in ``devboot.main``.
"""
