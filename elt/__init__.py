"""Extract, Load, Transform modules"""
