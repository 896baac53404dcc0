"""CLI package for cloud-cli

This package provides the command tree: login, logout, status,
env upgrade, backup restore and task wait.
"""
