# pipeline/errors.py
from __future__ import annotations


class PipelineError(Exception):
    """Base class for every fatal error raised by the detection pipeline."""


class InputError(PipelineError, ValueError):
    """Undecodable or malformed image, or a zero-area buffer."""


class ProcessingError(PipelineError, RuntimeError):
    """Unexpected numeric failure inside a detection stage."""


class ProcessingCancelled(PipelineError):
    """The caller cancelled an in-flight processing call."""


class ProcessingTimeout(ProcessingCancelled):
    """The processing call ran past its wall-clock deadline."""


class TransportError(PipelineError):
    """Network, timeout or HTTP failure while talking to the cloud service."""
