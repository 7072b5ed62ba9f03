"""Core infrastructure: configuration, database, logging, metrics, security"""
