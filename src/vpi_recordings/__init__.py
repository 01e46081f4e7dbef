"""Locates VPI call recordings in object storage and delivers them as MP3."""
