"""Service layer"""
