"""
Command-line interface for VEO Content Analysis
"""
