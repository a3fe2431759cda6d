"""
Backend Scripts Module

This module contains utility scripts for database operations and maintenance.

Available scripts:
    - seed_data.py: Loads roles, users, actions and the forwarding hierarchy

Usage:
    python -m scripts.seed_data
"""
