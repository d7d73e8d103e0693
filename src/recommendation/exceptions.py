"""
Recommendation Engine Errors
Exception hierarchy raised by engines, persistence and configuration
"""


class RecommendationError(Exception):
    """Base class for all recommendation engine errors"""


class ConfigurationError(RecommendationError, ValueError):
    """Raised when an engine is configured with an unusable combination of options"""


class MalformedModelFileError(RecommendationError, ValueError):
    """Raised when a persisted model file does not follow the expected line format"""

    def __init__(self, message: str, file_path: str = None, line_number: int = None):
        location = ""
        if file_path is not None:
            location = f"{file_path}"
            if line_number is not None:
                location += f":{line_number}"
            location += ": "
        super().__init__(f"{location}{message}")
        self.file_path = file_path
        self.line_number = line_number


class ModelNotTrainedError(RecommendationError, RuntimeError):
    """Raised when a trained model is required but precompute has not completed"""
