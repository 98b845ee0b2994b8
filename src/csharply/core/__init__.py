"""
Core engine, configuration and file processing for CSharply
"""
