"""MCP server exposing the Prometheus host metrics fetcher"""
