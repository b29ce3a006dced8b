"""
On-disk layout conventions of the telemetry store.
"""
