"""Command line interface for pacmeta"""
