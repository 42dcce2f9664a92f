"""Exception types for a script-to-audio job.

Everything here is fatal: it aborts the job and is reported to the caller.
Recoverable problems (missing sounds, unknown effects, bad numbers) are
logged where they happen and never raised.
"""


class AudioScriptError(Exception):
    """Base class for job-aborting failures."""


class SynthesisError(AudioScriptError):
    """The speech engine failed to produce audio for a text segment."""


class AssetDownloadError(AudioScriptError):
    """A model or voice file could not be fetched."""


class RenderError(AudioScriptError):
    """Assembling or writing the final audio failed."""
