class DexiNedError(Exception):
    """Base class for all dexined_edge errors."""


class ModelLoadError(DexiNedError):
    """Model file is missing, corrupt or not loadable by the chosen backend."""


class SourceOpenError(DexiNedError):
    """Camera or video file could not be opened."""


class PostprocessError(DexiNedError):
    """
    Network outputs for one frame could not be turned into edge maps.
    Non-fatal: the capture loop skips the frame.
    """


class EmptyOutputError(PostprocessError):
    pass


class ShapeMismatchError(PostprocessError):
    pass
