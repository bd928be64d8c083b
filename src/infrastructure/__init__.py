"""
Infrastructure layer - external service integrations.

Each subdirectory wraps an external dependency:
- identity: Azure managed identity / developer credential chain
- storage: Azure Blob Storage

These wrappers translate SDK errors into our own error types.
"""
