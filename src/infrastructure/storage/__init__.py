"""
Object storage integration for image retrieval.

Reads blobs from Azure Blob Storage using a token credential.
Includes mock mode for local development without an account.
"""
