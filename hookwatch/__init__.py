"""hookwatch - webhook ingestion and event log for repository dashboards"""
__version__ = "0.1.0"
