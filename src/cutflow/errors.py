"""Error taxonomy shared by the compiler, runner and edit engine."""


class CutflowError(Exception):
    """Base class. `kind` names the error in structured payloads."""

    kind = "error"

    def to_payload(self) -> dict:
        """Structured failure payload returned by an export request."""
        return {"error": self.kind, "message": str(self)}


class ValidationError(CutflowError, ValueError):
    """Input rejected before any graph node is built or process spawned."""

    kind = "validation"


class CompilationError(CutflowError):
    """Internal invariant broken while assembling the filter graph."""

    kind = "compilation"


class ExternalToolError(CutflowError):
    """ffmpeg exited non-zero."""

    kind = "external_tool"

    def __init__(self, returncode: int, message: str):
        self.returncode = returncode
        super().__init__(f"ffmpeg exited with code {returncode}: {message}")


class OutputMissingError(CutflowError):
    """ffmpeg exited zero but the expected output file is absent."""

    kind = "output_missing"

    def __init__(self, path):
        self.path = str(path)
        super().__init__(f"Output file was not created: {self.path}")


class EditStateError(CutflowError):
    """Pointer event not valid in the current edit state."""

    kind = "edit_state"
