"""Utilities - timestamps, validation, error sanitization"""
