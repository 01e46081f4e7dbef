from .recording_handler import RecordingHandler

__all__ = ["RecordingHandler"]
