"""Pipeline error taxonomy."""


class PipelineError(RuntimeError):
    """Base class for failures raised by the transcription pipeline and store."""


class AcquisitionError(PipelineError):
    """Downloader or decoder failed to spawn or exited non-zero."""


class ConversionError(PipelineError):
    """Integer PCM samples could not be converted to float."""


class InferenceError(PipelineError):
    """Model load, state creation or decoding failed."""


class PersistenceError(PipelineError):
    """A transaction or statement against the store failed."""


class NotFoundError(PipelineError):
    """No transcript matches the requested id or URL."""
