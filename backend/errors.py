"""
Error types for the analysis pipeline.
Each error knows the HTTP status it maps to, so both the FastAPI app and the
serverless handler can turn it into the same JSON envelope.
"""


class AnalyzerError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# --- Upload validation (400) ---

class UploadValidationError(AnalyzerError):
    status_code = 400


class MissingFileError(UploadValidationError):
    def __init__(self, message: str = "No file provided"):
        super().__init__(message)


class UnsupportedMediaTypeError(UploadValidationError):
    pass


class FileTooLargeError(UploadValidationError):
    pass


class EmptyFileError(UploadValidationError):
    def __init__(self, message: str = "Uploaded file is empty"):
        super().__init__(message)


class UnreadableImageError(UploadValidationError):
    pass


class MalformedRequestError(UploadValidationError):
    pass


# --- Server side (500) ---

class ConfigurationError(AnalyzerError):
    pass


class UpstreamError(AnalyzerError):
    pass


class EmptyCompletionError(UpstreamError):
    def __init__(self, message: str = "No response from AI service"):
        super().__init__(message)
