"""Procurement approval workflow service."""
