"""Configuration - settings and the tip pool layout"""
