"""Terminal line-editing components: undo, validation, key decoding and rendering."""

__version__ = "0.1.0"
__all__ = ["undo", "validate", "keyseq", "render", "posix_render"]