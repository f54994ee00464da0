"""Configuration for the Prometheus load watcher"""
