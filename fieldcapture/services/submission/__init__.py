"""
Submission module - delivery of assembled payloads to the remote backend.
"""

from .transport import SubmissionTransport

__all__ = ["SubmissionTransport"]
