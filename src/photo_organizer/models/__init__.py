"""Data models for photo organizer."""

from .photo_file import PhotoFile
from .config import Config, load_config, save_config

__all__ = ["PhotoFile", "Config", "load_config", "save_config"]
