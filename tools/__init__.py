"""Prometheus collectors and query helpers"""
