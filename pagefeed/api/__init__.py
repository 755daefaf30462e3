"""HTTP API - webhook ingest, digest delivery, webhook registration"""
