"""Inbound vision data: device tables, source adapters and field layouts."""
