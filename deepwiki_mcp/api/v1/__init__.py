"""Versionless API routers"""
