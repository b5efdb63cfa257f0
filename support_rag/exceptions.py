# support_rag/exceptions.py


class GenerationError(Exception):
    """Generation service call failed (network, quota, empty output)."""


class GenerationConfigError(GenerationError):
    """Generation service is misconfigured (missing key, auth rejected)."""


class DocumentLoadError(Exception):
    """Uploaded file could not be turned into text."""


class UnsupportedFileTypeError(DocumentLoadError):
    """Uploaded file has an extension we do not ingest."""
