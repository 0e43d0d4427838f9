"""
Adapters — everything that touches the outside world through a native
tool (package managers).
"""
