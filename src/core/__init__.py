"""
Core retrieval logic for the blob gateway.

This module is framework-agnostic - it doesn't import FastAPI or the Azure
SDKs. Request validation and locator construction can be tested without
any network access, and the storage and identity backends are plugged in
through protocols.
"""
