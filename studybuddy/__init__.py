"""Study Buddy: an AI study companion with a streaming tutor chat."""

__version__ = "0.1.0"
