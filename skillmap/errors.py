"""
Exceptions raised by SkillMap operations.

Errors that reach the user are shown as blocking notices by the edit
handlers; everything else is logged and replaced with a safe default.
"""


class SkillMapError(Exception):
    """Base exception with the name of the operation that failed."""
    def __init__(self, message: str, operation: str = ""):
        self.operation = operation
        super().__init__(message)


class NoSuchParentError(SkillMapError):
    """add_child was asked to attach to a node that does not exist."""
    def __init__(self, parent_id: str):
        self.parent_id = parent_id
        super().__init__(f"No node '{parent_id}' to attach a child to", "add_child")


class NoSelectionError(SkillMapError):
    """An action that needs an anchor node fired without one."""
    def __init__(self, action: str):
        super().__init__(f"Please select a node first ({action})", action)


class ImportFormatError(SkillMapError):
    """An imported document could not be decoded at all."""
    def __init__(self, message: str):
        super().__init__(message, "import")
