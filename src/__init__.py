"""
Blob Gateway - anonymous HTTP access to images in Azure Blob Storage.

This package contains the complete application:
- core: Framework-agnostic validation and retrieval logic
- infrastructure: Azure identity and Blob Storage integrations
- api: FastAPI routes and dependencies
- config: Application configuration
"""

__version__ = "0.1.0"
