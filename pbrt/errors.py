class SceneLoadError(Exception):
    """
    Raised when a scene file cannot be read or parsed.
    """

    def __init__(self, message: str, filename: str | None = None, line: int = 0, column: int = 0) -> None:
        """
        Initialize the error.

        Args:
            message: the description of the failure
            filename: the file being parsed when the failure occurred
            line: the 1-based line number of the offending token
            column: the 1-based column number of the offending token
        """

        super().__init__(message)
        self.message = message
        self.filename = filename
        self.line = line
        self.column = column

    def __str__(self) -> str:
        return f"{self.message} [{self.filename}:{self.line}:{self.column}]"

class TriangulationError(Exception):
    """
    Raised when a shape cannot be converted into a triangle mesh.
    """
