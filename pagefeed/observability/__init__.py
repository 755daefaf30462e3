"""Observability - logging and lightweight telemetry"""
