"""jobook: job board API with CV-to-post recommendations."""
__version__ = '0.1.0'
